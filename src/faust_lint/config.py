"""
Runtime Configuration Store.

Settings are read from the nearest `pyproject.toml` `[tool.faust_lint]` table
and overridden by explicit arguments (typically CLI flags).
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from faust_lint.enums import FixMode, ProcessSelectionPolicy

if sys.version_info >= (3, 11):
  import tomllib
else:
  try:
    import tomli as tomllib
  except ImportError:
    tomllib = None  # type: ignore

STDFAUST = "stdfaust.lib"

# Environment prefixes that `stdfaust.lib` binds.
DEFAULT_LIBRARY_PREFIXES: Dict[str, str] = {
  prefix: STDFAUST
  for prefix in (
    "aa",
    "an",
    "ba",
    "co",
    "de",
    "dm",
    "dx",
    "ef",
    "en",
    "fd",
    "fi",
    "ho",
    "it",
    "la",
    "ma",
    "mi",
    "mo",
    "no",
    "os",
    "pf",
    "pm",
    "qu",
    "re",
    "ro",
    "sf",
    "si",
    "so",
    "sp",
    "sy",
    "ve",
    "vl",
    "wa",
    "wd",
  )
}


class LintConfig(BaseModel):
  """
  Global configuration container for analysis, fixing and the outer tools.
  """

  max_iterations: int = Field(5, ge=1, description="Iteration cap of a fix session.")
  time_budget: Optional[float] = Field(None, gt=0, description="Wall-clock budget of a fix session, in seconds.")
  complexity_threshold: int = Field(50, ge=1, description="Token count above which an expression is complex.")
  max_source_bytes: int = Field(1_000_000, ge=1, description="Inputs larger than this are rejected.")
  library_prefixes: Dict[str, str] = Field(
    default_factory=lambda: dict(DEFAULT_LIBRARY_PREFIXES),
    description="Environment prefix to owning library (e.g. 'os' -> 'stdfaust.lib').",
  )
  process_policy: ProcessSelectionPolicy = Field(
    ProcessSelectionPolicy.LAST_UNREFERENCED,
    description="Which definition add-missing-process binds to.",
  )
  default_mode: FixMode = Field(FixMode.MODERATE, description="Fix mode used when none is given.")
  backup_suffix: str = Field(".backup", description="Suffix appended to a file to name its backup.")

  compiler_path: str = Field("faust", description="Faust compiler executable.")
  compiler_args: List[str] = Field(default_factory=list, description="Extra compiler arguments.")
  compiler_timeout: float = Field(10.0, gt=0, description="Seconds before a compilation is abandoned.")
  compiler_max_concurrent: int = Field(2, ge=1, description="Concurrent compiler invocations.")

  workers: int = Field(4, ge=1, description="Thread pool size of the batch runner.")

  @field_validator("library_prefixes")
  @classmethod
  def validate_prefixes(cls, v: Dict[str, str]) -> Dict[str, str]:
    """
    Ensures every prefix maps to a library file name.

    Args:
        v (Dict[str, str]): The raw mapping.

    Returns:
        Dict[str, str]: The mapping with whitespace stripped.

    Raises:
        ValueError: If a library name is empty.
    """
    cleaned = {}
    for prefix, library in v.items():
      library = library.strip()
      if not library:
        raise ValueError(f"Empty library name for prefix '{prefix}'")
      cleaned[prefix.strip()] = library
    return cleaned

  @classmethod
  def load(
    cls,
    overrides: Optional[Dict[str, Any]] = None,
    search_path: Optional[Path] = None,
  ) -> "LintConfig":
    """
    Loads configuration from pyproject.toml and overrides with explicit values.

    `library_prefixes` from the TOML table extends the built-in map instead of
    replacing it.

    Args:
        overrides (Optional[Dict[str, Any]]): Values that win over the file (None values ignored).
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        LintConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    merged: Dict[str, Any] = dict(toml_config)
    for key, value in (overrides or {}).items():
      if value is not None:
        merged[key] = value

    if "library_prefixes" in merged:
      merged["library_prefixes"] = {**DEFAULT_LIBRARY_PREFIXES, **merged["library_prefixes"]}

    return cls.model_validate(merged)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Recursively searches parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  if not tomllib:
    return {}, None

  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError):
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get("faust_lint", {}), parent

  return {}, None


def parse_cli_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
  """
  Parses a list of 'key=value' strings into a dictionary.

  Types are inferred (int, float, bool, or string).

  Args:
      items (Optional[List[str]]): List of raw CLI strings directly from argparse.

  Returns:
      Dict[str, Any]: Parsed dictionary.
  """
  if not items:
    return {}

  config = {}
  for item in items:
    if "=" not in item:
      continue

    key, val_str = item.split("=", 1)
    key = key.strip().replace("-", "_")
    val_str = val_str.strip()

    final_val: Any = val_str

    if val_str.lower() == "true":
      final_val = True
    elif val_str.lower() == "false":
      final_val = False
    else:
      try:
        if "." in val_str or "e" in val_str.lower():
          final_val = float(val_str)
        else:
          final_val = int(val_str)
      except ValueError:
        pass

    config[key] = final_val

  return config

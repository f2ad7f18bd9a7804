"""
Tests for Configuration Loading.

Verifies:
1.  Defaults.
2.  pyproject.toml `[tool.faust_lint]` discovery in parent directories.
3.  Precedence of explicit overrides.
4.  CLI `key=value` parsing.
"""

import pytest
from pydantic import ValidationError

from faust_lint.config import DEFAULT_LIBRARY_PREFIXES, LintConfig, parse_cli_key_values
from faust_lint.enums import FixMode, ProcessSelectionPolicy


def test_defaults():
  config = LintConfig()
  assert config.max_iterations == 5
  assert config.time_budget is None
  assert config.complexity_threshold == 50
  assert config.process_policy == ProcessSelectionPolicy.LAST_UNREFERENCED
  assert config.default_mode == FixMode.MODERATE
  assert config.backup_suffix == ".backup"
  assert config.library_prefixes["os"] == "stdfaust.lib"


def test_load_without_pyproject(tmp_path):
  config = LintConfig.load(search_path=tmp_path)
  assert config.max_iterations == 5


def test_load_from_parent_pyproject(tmp_path):
  (tmp_path / "pyproject.toml").write_text(
    "[tool.faust_lint]\n"
    "max_iterations = 8\n"
    'process_policy = "first-defined"\n'
    "[tool.faust_lint.library_prefixes]\n"
    'my = "mine.lib"\n',
    encoding="utf-8",
  )
  nested = tmp_path / "dsp" / "synths"
  nested.mkdir(parents=True)

  config = LintConfig.load(search_path=nested)

  assert config.max_iterations == 8
  assert config.process_policy == ProcessSelectionPolicy.FIRST_DEFINED
  assert config.library_prefixes["my"] == "mine.lib"
  # Built-in prefixes are extended, not replaced.
  assert config.library_prefixes["os"] == "stdfaust.lib"


def test_overrides_win_over_file(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[tool.faust_lint]\nmax_iterations = 8\n", encoding="utf-8")
  config = LintConfig.load({"max_iterations": 2, "default_mode": None}, search_path=tmp_path)
  assert config.max_iterations == 2
  assert config.default_mode == FixMode.MODERATE


def test_invalid_toml_is_ignored(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[tool.faust_lint\n", encoding="utf-8")
  assert LintConfig.load(search_path=tmp_path).max_iterations == 5


def test_validation_errors():
  with pytest.raises(ValidationError):
    LintConfig(max_iterations=0)
  with pytest.raises(ValidationError):
    LintConfig(library_prefixes={"os": "  "})
  with pytest.raises(ValidationError):
    LintConfig(process_policy="random")


def test_prefix_whitespace_is_stripped():
  config = LintConfig(library_prefixes={" os ": " stdfaust.lib "})
  assert config.library_prefixes == {"os": "stdfaust.lib"}


def test_default_prefix_table():
  assert set(DEFAULT_LIBRARY_PREFIXES.values()) == {"stdfaust.lib"}
  assert {"os", "fi", "en", "de", "ba", "si", "ma"} <= set(DEFAULT_LIBRARY_PREFIXES)


def test_parse_cli_key_values():
  parsed = parse_cli_key_values(
    ["max-iterations=3", "time_budget=1.5", "process_policy=last-defined", "verbose=true", "junk"]
  )
  assert parsed == {
    "max_iterations": 3,
    "time_budget": 1.5,
    "process_policy": "last-defined",
    "verbose": True,
  }


def test_parse_cli_key_values_empty():
  assert parse_cli_key_values(None) == {}
  assert parse_cli_key_values([]) == {}

"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Fix rule registry isolation so tests registering throwaway rules do not leak.
- Console capture and `.dsp` file helpers.
"""

import io
import sys
from pathlib import Path
from typing import Callable

import pytest
from rich.console import Console

# Add src to path so we can import 'faust_lint' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import faust_lint.fixes  # noqa: E402  (registers the built-in rules)
from faust_lint.config import LintConfig  # noqa: E402
from faust_lint.fixes.base import _RULE_REGISTRY  # noqa: E402
from faust_lint.utils.console import reset_console, set_console  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_rule_registry():
  """
  Ensures rules registered inside a test are removed afterwards.
  """
  original_registry = _RULE_REGISTRY.copy()
  yield
  _RULE_REGISTRY.clear()
  _RULE_REGISTRY.update(original_registry)


@pytest.fixture
def config() -> LintConfig:
  """Default configuration, independent of any pyproject.toml on disk."""
  return LintConfig()


@pytest.fixture
def captured_console():
  """
  Routes console output and logging into an in-memory buffer.

  Yields:
      io.StringIO: The buffer receiving all output.
  """
  buffer = io.StringIO()
  set_console(Console(file=buffer, width=200, force_terminal=False, color_system=None))
  yield buffer
  reset_console()


@pytest.fixture
def write_dsp(tmp_path) -> Callable[..., Path]:
  """
  Factory writing a `.dsp` file below `tmp_path`.

  Returns:
      Callable: `write_dsp(name, code)` returning the file path.
  """

  def _write(name: str, code: str) -> Path:
    path = tmp_path / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(code, encoding="utf-8")
    return path

  return _write

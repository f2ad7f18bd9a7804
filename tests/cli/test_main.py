"""
Tests for CLI argument parsing and dispatch.

Handlers are patched at the `faust_lint.cli.commands` facade.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from faust_lint.cli.__main__ import main


def test_analyze_dispatch():
  with patch("faust_lint.cli.commands.handle_analyze", return_value=0) as mock_handler:
    assert main(["analyze", "synth.dsp", "--json", "--structure"]) == 0

  mock_handler.assert_called_once_with(Path("synth.dsp"), True, False, True, {})


def test_fix_dispatch_with_config_overrides():
  with patch("faust_lint.cli.commands.handle_fix", return_value=1) as mock_handler:
    code = main(
      [
        "fix",
        "synth.dsp",
        "--mode",
        "all",
        "--no-backup",
        "--max-iterations",
        "3",
        "--config",
        "process_policy=first-defined",
      ]
    )

  assert code == 1
  mock_handler.assert_called_once_with(
    Path("synth.dsp"), "all", False, False, 3, {"process_policy": "first-defined"}
  )


def test_fix_defaults():
  with patch("faust_lint.cli.commands.handle_fix", return_value=0) as mock_handler:
    main(["fix", "synth.dsp", "--preview"])
  mock_handler.assert_called_once_with(Path("synth.dsp"), None, True, True, None, {})


def test_batch_dispatch():
  with patch("faust_lint.cli.commands.handle_batch", return_value=0) as mock_handler:
    main(["batch", "dsp", "--fix", "--workers", "8", "--json-report", "out.json", "--compile"])

  mock_handler.assert_called_once_with(Path("dsp"), True, None, 8, Path("out.json"), None, True, {})


def test_invalid_mode_rejected():
  with pytest.raises(SystemExit):
    main(["fix", "synth.dsp", "--mode", "reckless"])


def test_command_required():
  with pytest.raises(SystemExit):
    main([])


def test_version(capsys):
  with pytest.raises(SystemExit) as excinfo:
    main(["--version"])
  assert excinfo.value.code == 0
  assert "0.1.0" in capsys.readouterr().out

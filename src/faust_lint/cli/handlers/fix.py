"""
Fix Command Handler.

Runs the auto-fixer on one file, writing the result back (with a backup) or
printing a diff in preview mode.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from rich.syntax import Syntax
from rich.table import Table

from faust_lint.config import LintConfig
from faust_lint.errors import SourceTooLargeError
from faust_lint.fixes.orchestrator import fix_file
from faust_lint.utils.console import console, log_error, log_info, log_success, log_warning


def handle_fix(
  path: Path,
  mode: Optional[str] = None,
  preview: bool = False,
  backup: bool = True,
  max_iterations: Optional[int] = None,
  settings: Optional[Dict[str, Any]] = None,
) -> int:
  """
  Fixes a single `.dsp` file.

  Args:
      path: Input source file.
      mode: `safe`, `moderate` or `all` (default: from config).
      preview: Print the diff without touching the file.
      backup: Save the original as `<file><backup_suffix>` before writing.
      max_iterations: Override for the iteration cap.
      settings: Configuration overrides from `--config`.

  Returns:
      int: 0 if the session converged without failures, 1 otherwise.
  """
  if not path.is_file():
    log_error(f"File not found: {path}")
    return 1

  overrides = dict(settings or {})
  if max_iterations is not None:
    overrides["max_iterations"] = max_iterations
  config = LintConfig.load(overrides, search_path=path.parent)
  fix_mode = mode or config.default_mode

  try:
    report = fix_file(path, fix_mode, config, backup=backup and not preview, write=not preview)
  except (OSError, UnicodeDecodeError, SourceTooLargeError) as e:
    log_error(f"Failed to fix {path}: {e}")
    return 1

  if report.applied_fixes:
    table = Table(title=f"Applied fixes ({path.name})")
    table.add_column("Rule", style="cyan")
    table.add_column("Tier", justify="center")
    table.add_column("Summary")
    table.add_column("Score", justify="right")
    for applied in report.applied_fixes:
      table.add_row(
        applied.rule_id,
        applied.tier.value,
        applied.summary,
        f"{applied.score_before} -> {applied.score_after}",
      )
    console.print(table)

  for failure in report.failures:
    log_warning(f"{failure.rule_id}: {failure.reason}")

  if preview and report.diff:
    console.print(Syntax(report.diff, "diff", theme="ansi_dark"))
  elif not report.changed:
    log_info(f"{path.name}: nothing to fix")
  else:
    log_success(f"Fixed {path.name} ({report.score_before} -> {report.score_after})")
    if report.backup_path:
      log_info(f"Backup saved to [path]{report.backup_path}[/path]")

  if not report.converged:
    log_warning(f"Stopped without converging ({report.stop_reason})")

  return 0 if report.converged and not report.failures else 1

"""
Batch Command Handler.

Scans a directory for `.dsp` files, processes them concurrently and writes
the optional JSON/CSV reports.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from faust_lint.batch import BatchRunner, scan_directory
from faust_lint.config import LintConfig
from faust_lint.report import render_table, to_csv, to_json
from faust_lint.utils.console import log_error, log_info, log_success


def handle_batch(
  path: Path,
  fix: bool = False,
  mode: Optional[str] = None,
  workers: Optional[int] = None,
  json_report: Optional[Path] = None,
  csv_report: Optional[Path] = None,
  compile: bool = False,
  settings: Optional[Dict[str, Any]] = None,
) -> int:
  """
  Processes every `.dsp` file under a path.

  Args:
      path: Directory (or single file) to scan.
      fix: Fix files in place (with backups).
      mode: Fix mode (default: from config).
      workers: Thread pool size (default: from config).
      json_report: Where to write the JSON report.
      csv_report: Where to write the CSV report.
      compile: Run the compilation oracle on each file.
      settings: Configuration overrides from `--config`.

  Returns:
      int: 0 if every file passed, 1 otherwise.
  """
  if not path.exists():
    log_error(f"Path not found: {path}")
    return 1

  files = scan_directory(path)
  if not files:
    log_error(f"No .dsp files found under {path}")
    return 1

  search_root = path if path.is_dir() else path.parent
  config = LintConfig.load(settings, search_path=search_root)
  runner = BatchRunner(config, workers=workers)
  report = runner.run(files, fix=fix, mode=mode, write=fix, compile=compile)

  render_table(report)

  for target, render in ((json_report, to_json), (csv_report, to_csv)):
    if target is None:
      continue
    try:
      target.parent.mkdir(parents=True, exist_ok=True)
      target.write_text(render(report), encoding="utf-8")
      log_info(f"Report saved to [path]{target}[/path]")
    except OSError as e:
      log_error(f"Failed to write report {target}: {e}")

  if report.summary.failed == 0:
    log_success(f"Batch complete: {report.summary.passed}/{report.summary.files} files passed.")
    return 0
  return 1

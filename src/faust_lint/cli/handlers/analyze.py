"""
Analyze Command Handler.

Runs the analysis pipeline on one file and prints the diagnostics, either as
a Rich table or as JSON on stdout.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from rich.table import Table

from faust_lint import analyze
from faust_lint.config import LintConfig
from faust_lint.enums import Severity
from faust_lint.errors import SourceTooLargeError
from faust_lint.models import AnalysisReport
from faust_lint.utils.console import console, log_error, log_success

_SEVERITY_STYLE = {
  Severity.ERROR: "error",
  Severity.WARNING: "warning",
  Severity.STYLE: "style",
}


def handle_analyze(
  path: Path,
  json_mode: bool = False,
  compile: bool = False,
  show_structure: bool = False,
  settings: Optional[Dict[str, Any]] = None,
) -> int:
  """
  Analyzes a single `.dsp` file.

  Args:
      path: Input source file.
      json_mode: If True, print the report as JSON to stdout.
      compile: Also run the compilation oracle.
      show_structure: Print the structure summary and detected patterns.
      settings: Configuration overrides from `--config`.

  Returns:
      int: 0 if no error-severity diagnostics were found, 1 otherwise.
  """
  if not path.is_file():
    log_error(f"File not found: {path}")
    return 1

  config = LintConfig.load(settings, search_path=path.parent)
  try:
    code = path.read_text(encoding="utf-8")
    report = analyze(code, config=config, compile=compile)
  except (OSError, UnicodeDecodeError, SourceTooLargeError) as e:
    log_error(f"Failed to analyze {path}: {e}")
    return 1

  has_errors = report.count(Severity.ERROR) > 0

  if json_mode:
    print(report.model_dump_json(indent=2))
    return 1 if has_errors else 0

  _print_report(path, report, show_structure)
  if not report.diagnostics:
    log_success(f"{path.name}: no issues found")
  return 1 if has_errors else 0


def _print_report(path: Path, report: AnalysisReport, show_structure: bool) -> None:
  if report.diagnostics:
    table = Table(title=f"Diagnostics for {path.name}")
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Severity", justify="center")
    table.add_column("Category", style="dim")
    table.add_column("Message")
    table.add_column("Suggestion", style="dim")

    for diag in sorted(report.diagnostics, key=lambda d: (d.line, d.column or 0)):
      style = _SEVERITY_STYLE[diag.severity]
      table.add_row(
        str(diag.line),
        f"[{style}]{diag.severity.value}[/{style}]",
        diag.category,
        diag.message,
        diag.suggestion or "",
      )
    console.print(table)

  metrics = report.metrics
  console.print(f"[bold]Quality score:[/bold] [blue]{report.score}/100[/blue]")
  console.print(
    f"Lines: {metrics.lines}  Definitions: {metrics.definitions}  "
    f"Imports: {metrics.imports}  Process: {'yes' if metrics.has_process else 'no'}"
  )
  console.print(
    f"Errors: [red]{report.count(Severity.ERROR)}[/red]  "
    f"Warnings: [yellow]{report.count(Severity.WARNING)}[/yellow]  "
    f"Style: {report.count(Severity.STYLE)}"
  )

  if show_structure:
    structure = report.structure
    console.print("[bold]Structure[/bold]")
    console.print(f"  Functions with parameters: {structure.functions_with_params} (max {structure.max_params})")
    console.print(
      f"  Expression length: max {structure.max_expression_length}, "
      f"average {structure.average_expression_length:.1f}"
    )
    console.print(f"  Nesting: max {structure.max_nesting}, average {structure.average_nesting:.1f}")
    console.print(f"  Recursion likely: {'yes' if structure.recursive_likely else 'no'}")
    for pattern in structure.patterns:
      console.print(f"  - {pattern.kind}: {pattern.definition}")

  if report.compilation is not None:
    status = report.compilation.get("status")
    reason = report.compilation.get("reason")
    console.print(f"[bold]Compilation:[/bold] {status}" + (f" ({reason})" if reason else ""))
    for message in report.compilation.get("messages", []):
      location = f"line {message['line']}: " if message.get("line") else ""
      console.print(f"  {location}{message['message']} [dim]({message['category']})[/dim]")

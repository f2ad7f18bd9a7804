"""
Batch Reporters.

Serializes a `BatchReport` to JSON or CSV and renders it as a Rich table.
"""

import csv
import io
import json
from typing import Optional

from rich.console import Console
from rich.table import Table

from faust_lint.batch import BatchReport
from faust_lint.utils.console import console as default_console

CSV_COLUMNS = ["path", "passed", "score", "errors", "warnings", "style", "fixed", "applied_fixes", "compile", "error"]


def to_json(report: BatchReport) -> str:
  """
  Serializes the report as indented JSON.

  Args:
      report (BatchReport): The batch results.

  Returns:
      str: JSON text with sorted keys.
  """
  return json.dumps(report.model_dump(mode="json"), indent=2, sort_keys=True)


def to_csv(report: BatchReport) -> str:
  """
  Serializes one row per file.

  Args:
      report (BatchReport): The batch results.

  Returns:
      str: CSV text including a header row.
  """
  buffer = io.StringIO()
  writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
  writer.writeheader()
  for result in report.results:
    writer.writerow(
      {
        "path": str(result.path),
        "passed": result.passed,
        "score": result.score,
        "errors": result.errors,
        "warnings": result.warnings,
        "style": result.style,
        "fixed": result.fixed,
        "applied_fixes": ";".join(result.applied_fixes),
        "compile": result.compilation.status.value if result.compilation else "",
        "error": result.error or "",
      }
    )
  return buffer.getvalue()


def render_table(report: BatchReport, console: Optional[Console] = None) -> None:
  """
  Prints the results and summary to the console.

  Args:
      report (BatchReport): The batch results.
      console (Optional[Console]): Destination, defaults to the shared console.
  """
  out = console or default_console

  table = Table(title="Faust Lint Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Score", justify="right")
  table.add_column("Errors", justify="right", style="red")
  table.add_column("Warnings", justify="right", style="yellow")
  table.add_column("Fixes", style="dim")

  for result in report.results:
    if result.error:
      status = "[red]ERROR[/red]"
    elif result.passed:
      status = "[green]PASS[/green]"
    else:
      status = "[red]FAIL[/red]"
    table.add_row(
      str(result.path),
      status,
      str(result.score),
      str(result.errors),
      str(result.warnings),
      ", ".join(result.applied_fixes) or "-",
    )

  out.print(table)

  summary = report.summary
  out.print(f"[bold]Files:[/bold] {summary.files}")
  out.print(f"Passed:        [green]{summary.passed}[/green]")
  out.print(f"Failed:        [red]{summary.failed}[/red]")
  out.print(f"Fixed:         {summary.fixed}")
  out.print(f"Average score: [blue]{summary.average_score:.1f}[/blue]")

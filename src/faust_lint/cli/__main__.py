"""
Main Entry Point for faust-lint CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `faust_lint.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from faust_lint import __version__
from faust_lint.cli import commands
from faust_lint.config import parse_cli_key_values

MODES = ["safe", "moderate", "all"]


def _add_config_flag(cmd: argparse.ArgumentParser) -> None:
  cmd.add_argument(
    "--config",
    nargs="*",
    help="Configuration overrides in key=value format (e.g. complexity_threshold=80 process_policy=last-defined)",
  )


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="faust-lint: Static analyzer and auto-fixer for Faust DSP code")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: ANALYZE ---
  cmd_analyze = subparsers.add_parser("analyze", help="Report diagnostics and quality score for a .dsp file")
  cmd_analyze.add_argument("path", type=Path, help="Input .dsp file")
  cmd_analyze.add_argument("--json", action="store_true", help="Print the report as JSON")
  cmd_analyze.add_argument("--compile", action="store_true", help="Also compile with the faust binary")
  cmd_analyze.add_argument("--structure", action="store_true", help="Show the structure summary")
  _add_config_flag(cmd_analyze)

  # --- Command: FIX ---
  cmd_fix = subparsers.add_parser("fix", help="Automatically fix known defects in a .dsp file")
  cmd_fix.add_argument("path", type=Path, help="Input .dsp file")
  cmd_fix.add_argument("--mode", choices=MODES, default=None, help="Which fix tiers may run (default: from config)")
  cmd_fix.add_argument("--preview", action="store_true", help="Show the diff without writing")
  cmd_fix.add_argument("--no-backup", action="store_true", help="Do not save a backup of the original")
  cmd_fix.add_argument("--max-iterations", type=int, default=None, help="Iteration cap of the fix loop")
  _add_config_flag(cmd_fix)

  # --- Command: BATCH ---
  cmd_batch = subparsers.add_parser("batch", help="Analyze (and optionally fix) every .dsp file under a path")
  cmd_batch.add_argument("path", type=Path, help="Directory or file")
  cmd_batch.add_argument("--fix", action="store_true", help="Fix files in place (with backups)")
  cmd_batch.add_argument("--mode", choices=MODES, default=None, help="Fix mode (default: from config)")
  cmd_batch.add_argument("--workers", type=int, default=None, help="Worker threads (default: from config)")
  cmd_batch.add_argument("--json-report", type=Path, help="Write a JSON report")
  cmd_batch.add_argument("--csv-report", type=Path, help="Write a CSV report")
  cmd_batch.add_argument("--compile", action="store_true", help="Also compile each file")
  _add_config_flag(cmd_batch)

  args = parser.parse_args(argv)
  settings = parse_cli_key_values(args.config)

  if args.command == "analyze":
    return commands.handle_analyze(args.path, args.json, args.compile, args.structure, settings)

  elif args.command == "fix":
    return commands.handle_fix(
      args.path, args.mode, args.preview, not args.no_backup, args.max_iterations, settings
    )

  elif args.command == "batch":
    return commands.handle_batch(
      args.path, args.fix, args.mode, args.workers, args.json_report, args.csv_report, args.compile, settings
    )

  return 0


if __name__ == "__main__":
  sys.exit(main())

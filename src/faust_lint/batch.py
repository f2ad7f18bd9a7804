"""
Batch Runner.

Analyzes (and optionally fixes and compiles) many `.dsp` files with a bounded
thread pool. Each file is independent; per-file I/O problems are recorded on
that file's result and never abort the batch. Results are sorted by path so
reports are deterministic regardless of completion order.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from faust_lint.analysis.pipeline import analyze_source
from faust_lint.config import LintConfig
from faust_lint.enums import FixMode, Severity
from faust_lint.errors import SourceTooLargeError
from faust_lint.fixes.orchestrator import AutoFixOrchestrator, fix_file
from faust_lint.models import Diagnostic
from faust_lint.oracle.compiler import CompilationResult, FaustCompiler
from faust_lint.utils.console import log_error, log_info

DSP_SUFFIX = ".dsp"


class FileResult(BaseModel):
  """
  Outcome for one file of a batch.
  """

  path: Path
  score: int = 0
  errors: int = 0
  warnings: int = 0
  style: int = 0
  passed: bool = False
  diagnostics: List[Diagnostic] = Field(default_factory=list)
  fixed: bool = False
  applied_fixes: List[str] = Field(default_factory=list)
  converged: Optional[bool] = None
  compilation: Optional[CompilationResult] = None
  error: Optional[str] = Field(None, description="I/O or size problem that stopped processing.")


class BatchSummary(BaseModel):
  files: int = 0
  passed: int = 0
  failed: int = 0
  fixed: int = 0
  errors: int = 0
  warnings: int = 0
  average_score: float = 0.0


class BatchReport(BaseModel):
  """
  Results of a batch run, sorted by path, with aggregate counts.
  """

  results: List[FileResult] = Field(default_factory=list)
  summary: BatchSummary = Field(default_factory=BatchSummary)


def scan_directory(root: Union[str, Path], recursive: bool = True) -> List[Path]:
  """
  Finds Faust sources under a directory.

  Directories whose name starts with `.` are skipped.

  Args:
      root (Union[str, Path]): A `.dsp` file or a directory.
      recursive (bool): Descend into subdirectories.

  Returns:
      List[Path]: Sorted file paths.
  """
  root = Path(root)
  if root.is_file():
    return [root] if root.suffix == DSP_SUFFIX else []

  pattern = f"**/*{DSP_SUFFIX}" if recursive else f"*{DSP_SUFFIX}"
  found = []
  for path in root.glob(pattern):
    relative = path.relative_to(root)
    if any(part.startswith(".") for part in relative.parts[:-1]):
      continue
    if path.is_file():
      found.append(path)
  return sorted(found)


def summarize(results: List[FileResult]) -> BatchSummary:
  """
  Aggregates per-file results.

  Args:
      results (List[FileResult]): File outcomes.

  Returns:
      BatchSummary: Totals and the mean score of files that were analysed.
  """
  scored = [r.score for r in results if r.error is None]
  return BatchSummary(
    files=len(results),
    passed=sum(1 for r in results if r.passed),
    failed=sum(1 for r in results if not r.passed),
    fixed=sum(1 for r in results if r.fixed),
    errors=sum(r.errors for r in results),
    warnings=sum(r.warnings for r in results),
    average_score=round(sum(scored) / len(scored), 2) if scored else 0.0,
  )


class BatchRunner:
  """
  Runs the per-file pipeline over many files concurrently.
  """

  def __init__(self, config: Optional[LintConfig] = None, workers: Optional[int] = None) -> None:
    """
    Args:
        config (Optional[LintConfig]): Shared settings.
        workers (Optional[int]): Thread pool size, defaults to `config.workers`.
    """
    self.config = config or LintConfig()
    self.workers = workers or self.config.workers
    self.compiler = FaustCompiler(self.config)

  def run(
    self,
    paths: Iterable[Union[str, Path]],
    fix: bool = False,
    mode: Optional[FixMode] = None,
    write: bool = False,
    compile: bool = False,
  ) -> BatchReport:
    """
    Processes every file.

    Args:
        paths (Iterable[Union[str, Path]]): Files to process.
        fix (bool): Run the fixer on each file.
        mode (Optional[FixMode]): Fix mode, defaults to `config.default_mode`.
        write (bool): Write fixed sources back (with a backup).
        compile (bool): Run the compilation oracle on the final source.

    Returns:
        BatchReport: Sorted results and summary.
    """
    files = sorted({Path(p) for p in paths})
    mode = FixMode(mode or self.config.default_mode)
    log_info(f"Processing {len(files)} file(s) with {self.workers} worker(s)")

    with ThreadPoolExecutor(max_workers=self.workers) as executor:
      results = list(executor.map(lambda p: self.process(p, fix, mode, write, compile), files))

    results.sort(key=lambda r: str(r.path))
    return BatchReport(results=results, summary=summarize(results))

  def process(self, path: Path, fix: bool, mode: FixMode, write: bool, compile: bool) -> FileResult:
    """
    Runs the pipeline on one file.

    Args:
        path (Path): The file.
        fix (bool): Run the fixer.
        mode (FixMode): Fix mode.
        write (bool): Write the fixed source back.
        compile (bool): Run the compilation oracle.

    Returns:
        FileResult: Outcome, with `error` set if the file could not be processed.
    """
    try:
      fixed = False
      applied: List[str] = []
      converged: Optional[bool] = None
      if fix:
        if write:
          report = fix_file(path, mode, self.config, backup=True, write=True)
        else:
          report = AutoFixOrchestrator(mode, self.config).run(path.read_text(encoding="utf-8"), name=path.name)
        source = report.fixed_source
        fixed = report.changed
        applied = [f.rule_id for f in report.applied_fixes]
        converged = report.converged
      else:
        source = path.read_text(encoding="utf-8")

      analysis = analyze_source(source, self.config)
    except (OSError, UnicodeDecodeError, SourceTooLargeError) as e:
      log_error(f"Failed to process {path}: {e}")
      return FileResult(path=path, error=str(e))

    diagnostics = analysis.diagnostics
    errors = sum(1 for d in diagnostics if d.severity == Severity.ERROR)
    return FileResult(
      path=path,
      score=analysis.score,
      errors=errors,
      warnings=sum(1 for d in diagnostics if d.severity == Severity.WARNING),
      style=sum(1 for d in diagnostics if d.severity == Severity.STYLE),
      passed=errors == 0,
      diagnostics=diagnostics,
      fixed=fixed,
      applied_fixes=applied,
      converged=converged,
      compilation=self.compiler.check(source) if compile else None,
    )

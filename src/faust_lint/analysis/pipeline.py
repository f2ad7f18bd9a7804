"""
Analysis Pipeline.

Composes the structural pass, the linter and the scorer into the single
"analyze" operation. `SourceAnalysis` keeps the intermediate artifacts (tokens,
AST, cleaned view) that fix rules need; `AnalysisReport` is the public,
serializable view of it.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from faust_lint.analysis.linter import Linter
from faust_lint.analysis.metrics import summarize_structure
from faust_lint.analysis.nodes import Program
from faust_lint.analysis.parser import StructuralAnalysis, StructuralAnalyzer
from faust_lint.analysis.scoring import quality_score
from faust_lint.analysis.tokens import CleanedSource
from faust_lint.config import LintConfig
from faust_lint.errors import SourceTooLargeError
from faust_lint.models import AnalysisReport, Diagnostic


@dataclass
class SourceAnalysis:
  """
  Complete in-memory result of analysing one source.

  Attributes:
      structure (StructuralAnalysis): Tokens, AST, cleaned view, metrics.
      diagnostics (List[Diagnostic]): Structural diagnostics followed by lint diagnostics.
      score (int): Quality score.
  """

  structure: StructuralAnalysis
  diagnostics: List[Diagnostic] = field(default_factory=list)
  score: int = 0

  @property
  def source(self) -> str:
    return self.structure.source

  @property
  def program(self) -> Program:
    return self.structure.program

  @property
  def cleaned(self) -> CleanedSource:
    return self.structure.cleaned

  def has(self, category: str) -> bool:
    """
    Checks for a diagnostic category.

    Args:
        category (str): Kebab-case category, e.g. `missing-import`.

    Returns:
        bool: True if at least one diagnostic has that category.
    """
    return any(d.category == category for d in self.diagnostics)

  def of(self, category: str) -> List[Diagnostic]:
    """Returns the diagnostics of a category, in order."""
    return [d for d in self.diagnostics if d.category == category]

  def to_report(self) -> AnalysisReport:
    """
    Builds the public report.

    Returns:
        AnalysisReport: Diagnostics, metrics, structure summary and score.
    """
    return AnalysisReport(
      diagnostics=list(self.diagnostics),
      metrics=self.structure.metrics,
      structure=summarize_structure(self.program),
      score=self.score,
    )


def check_size(source: str, config: LintConfig) -> None:
  """
  Rejects inputs above the configured size limit.

  Raises:
      SourceTooLargeError: If the UTF-8 encoding exceeds `max_source_bytes`.
  """
  size = len(source.encode("utf-8"))
  if size > config.max_source_bytes:
    raise SourceTooLargeError(size, config.max_source_bytes)


def analyze_source(source: str, config: Optional[LintConfig] = None) -> SourceAnalysis:
  """
  Runs the structural pass, the linter and the scorer.

  Args:
      source (str): Faust source text.
      config (Optional[LintConfig]): Settings; defaults are used if omitted.

  Returns:
      SourceAnalysis: The full analysis.

  Raises:
      SourceTooLargeError: If the source exceeds `max_source_bytes`.
  """
  config = config or LintConfig()
  check_size(source, config)

  structure = StructuralAnalyzer().analyze(source)
  linter = Linter(
    library_prefixes=config.library_prefixes,
    complexity_threshold=config.complexity_threshold,
  )
  diagnostics = list(structure.diagnostics) + linter.lint(structure)
  score = quality_score(diagnostics, structure.program)
  return SourceAnalysis(structure=structure, diagnostics=diagnostics, score=score)

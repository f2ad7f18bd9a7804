"""
Data structures representing the output of the analysis and fix pipelines.

This module defines the Pydantic models exchanged across the public API: the
`Diagnostic` reported by the analyzer and linter, the `Metrics` and
`StructureSummary` records, the `AnalysisReport` of an analyze call, and the
`FixReport` of a fix session.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from faust_lint.enums import DiagnosticOrigin, SafetyTier, Severity


class Diagnostic(BaseModel):
  """
  A reported issue. Diagnostics are recoverable by construction.
  """

  severity: Severity = Field(..., description="error, warning or style.")
  origin: DiagnosticOrigin = Field(DiagnosticOrigin.LINT, description="Pipeline stage that produced it.")
  category: str = Field(..., description="Stable kebab-case identifier, e.g. 'missing-import'.")
  message: str = Field(..., description="Human readable description.")
  line: int = Field(1, description="1-based source line.")
  column: Optional[int] = Field(None, description="1-based column, when known.")
  suggestion: Optional[str] = Field(None, description="Suggested remedy.")
  subject: Optional[str] = Field(None, description="Library, definition or parameter the issue is about.")

  @property
  def is_structural_error(self) -> bool:
    """True for an error raised by the structural analyzer."""
    return self.origin == DiagnosticOrigin.STRUCTURE and self.severity == Severity.ERROR

  def __str__(self) -> str:
    return f"[line {self.line}] {self.severity.value}: {self.message} ({self.category})"


class Metrics(BaseModel):
  """
  Size and token statistics of one source.
  """

  lines: int = 0
  characters: int = 0
  imports: int = 0
  definitions: int = 0
  has_process: bool = False
  tokens_total: int = 0
  identifiers: int = 0
  keywords: int = 0
  numbers: int = 0
  strings: int = 0
  operators: int = 0
  unknown: int = 0


class DetectedPattern(BaseModel):
  """
  A DSP idiom recognised inside a definition.
  """

  kind: str = Field(..., description="filter, oscillator, envelope, recursive or delay.")
  definition: str = Field(..., description="Name of the definition.")


class StructureSummary(BaseModel):
  """
  Architecture and complexity overview of a program.
  """

  definition_count: int = 0
  functions_with_params: int = 0
  max_params: int = 0
  max_expression_length: int = 0
  average_expression_length: float = 0.0
  max_nesting: int = 0
  average_nesting: float = 0.0
  recursive_likely: bool = False
  patterns: List[DetectedPattern] = Field(default_factory=list)


class AnalysisReport(BaseModel):
  """
  Result of a single analyze call.
  """

  diagnostics: List[Diagnostic] = Field(default_factory=list)
  metrics: Metrics = Field(default_factory=Metrics)
  structure: StructureSummary = Field(default_factory=StructureSummary)
  score: int = Field(100, description="Quality score in [0, 100].")
  compilation: Optional[Dict[str, Any]] = Field(None, description="Compilation oracle result, when requested.")

  @property
  def valid(self) -> bool:
    """True if the structural analyzer reported no errors."""
    return not any(d.is_structural_error for d in self.diagnostics)

  def count(self, severity: Severity) -> int:
    """
    Counts diagnostics of a given severity.

    Args:
        severity (Severity): The severity to count.

    Returns:
        int: Number of matching diagnostics.
    """
    return sum(1 for d in self.diagnostics if d.severity == severity)


class AppliedFix(BaseModel):
  """
  Change record of one accepted fix.
  """

  rule_id: str
  tier: SafetyTier
  summary: str
  changes: List[str] = Field(default_factory=list)
  score_before: int = 0
  score_after: int = 0


class FixFailure(BaseModel):
  """
  A rule whose predicate matched but whose transform was not accepted.
  """

  rule_id: str
  reason: str


class FixReport(BaseModel):
  """
  Result of a fix session.
  """

  original_source: str
  fixed_source: str
  applied_fixes: List[AppliedFix] = Field(default_factory=list)
  failures: List[FixFailure] = Field(default_factory=list)
  iteration_count: int = 0
  converged: bool = False
  stop_reason: str = Field("converged", description="converged, iteration-cap or time-budget.")
  backup_path: Optional[Path] = None
  score_before: int = 0
  score_after: int = 0
  diff: str = ""

  @property
  def changed(self) -> bool:
    """True if the fixed source differs from the original."""
    return self.fixed_source != self.original_source

"""
Quality Scorer.

Maps a diagnostic list and the structural model to an integer score in
[0, 100]. The score is what the fix orchestrator uses to refuse rewrites that
make a program worse.
"""

from typing import Iterable

from faust_lint.analysis.nodes import Program
from faust_lint.enums import DiagnosticOrigin, Severity
from faust_lint.models import Diagnostic

BASE_SCORE = 100
STRUCTURAL_ERROR_PENALTY = 10
LINT_ERROR_PENALTY = 5
WARNING_PENALTY = 2
STYLE_PENALTY = 1
PROCESS_BONUS = 5
IMPORT_BONUS = 3


def quality_score(diagnostics: Iterable[Diagnostic], program: Program) -> int:
  """
  Computes the quality score.

  Args:
      diagnostics (Iterable[Diagnostic]): Structural and lint diagnostics.
      program (Program): The structural model (for the process/import bonuses).

  Returns:
      int: Score clamped to [0, 100].
  """
  score = BASE_SCORE
  for diag in diagnostics:
    if diag.severity == Severity.ERROR:
      score -= STRUCTURAL_ERROR_PENALTY if diag.origin == DiagnosticOrigin.STRUCTURE else LINT_ERROR_PENALTY
    elif diag.severity == Severity.WARNING:
      score -= WARNING_PENALTY
    else:
      score -= STYLE_PENALTY

  if program.process is not None:
    score += PROCESS_BONUS
  if program.imports:
    score += IMPORT_BONUS

  return max(0, min(BASE_SCORE, score))

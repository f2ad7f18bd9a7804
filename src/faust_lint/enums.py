"""
Enumerations for faust-lint.

This module defines the standard enumerations shared by the analysis pipeline,
the fix engine and the reporting layer.
"""

from enum import Enum
from typing import FrozenSet


class Severity(str, Enum):
  """
  Severity of a reported diagnostic.

  Ordered from most to least serious. None of them aborts analysis.
  """

  ERROR = "error"
  WARNING = "warning"
  STYLE = "style"


class DiagnosticOrigin(str, Enum):
  """
  The pipeline stage that produced a diagnostic.

  Structural diagnostics come from the statement-level parser (recoverable parse
  boundary problems); lint diagnostics come from the rule-based linter.
  """

  STRUCTURE = "structure"
  LINT = "lint"


class SafetyTier(str, Enum):
  """
  Classification of a fix rule by how much it risks changing program behaviour.
  """

  SAFE = "safe"
  MODERATE = "moderate"
  RISKY = "risky"


class FixMode(str, Enum):
  """
  Caller-selected mode restricting which safety tiers may be applied.
  """

  SAFE = "safe"  # safe only
  MODERATE = "moderate"  # safe + moderate
  ALL = "all"  # every tier

  @property
  def allowed_tiers(self) -> FrozenSet[SafetyTier]:
    """
    Resolves the tiers permitted by this mode.

    Returns:
        FrozenSet[SafetyTier]: The permitted tiers.
    """
    if self is FixMode.SAFE:
      return frozenset({SafetyTier.SAFE})
    if self is FixMode.MODERATE:
      return frozenset({SafetyTier.SAFE, SafetyTier.MODERATE})
    return frozenset(SafetyTier)


class ProcessSelectionPolicy(str, Enum):
  """
  Strategy used to pick the definition bound by a synthesized `process`.
  """

  LAST_DEFINED = "last-defined"
  FIRST_DEFINED = "first-defined"
  LAST_UNREFERENCED = "last-unreferenced"


class CompileStatus(str, Enum):
  """
  Outcome of a compilation oracle invocation.
  """

  COMPILED = "compiled"
  FAILED = "failed"
  SKIPPED = "skipped"  # tool missing or timed out

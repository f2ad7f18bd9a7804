"""
Fix Rule Base Definitions.

Defines the `FixRule` interface, the rule registry populated by the
`register_fix_rule` decorator, and the `FixRuleEngine` that orders rules by
priority and filters them by fix mode.

Rules are stateless: both the predicate and the transform are functions of the
source text and its analysis.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple, Type

from faust_lint.analysis.pipeline import SourceAnalysis
from faust_lint.config import LintConfig
from faust_lint.enums import FixMode, SafetyTier

# (start offset, end offset, replacement text)
TextEdit = Tuple[int, int, str]


@dataclass
class FixOutcome:
  """
  Result of running one rule's transform.

  Attributes:
      ok (bool): False if the rule gave up.
      new_source (str): The rewritten text.
      summary (str): One-line description of what changed (or why it failed).
      changes (List[str]): Per-edit descriptions.
  """

  ok: bool
  new_source: str
  summary: str = ""
  changes: List[str] = field(default_factory=list)


def apply_edits(source: str, edits: Iterable[TextEdit]) -> str:
  """
  Applies non-overlapping text edits.

  Edits are applied from the end of the text backwards so earlier offsets
  stay valid.

  Args:
      source (str): The original text.
      edits (Iterable[TextEdit]): `(start, end, replacement)` triples.

  Returns:
      str: The edited text.
  """
  result = source
  for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
    result = result[:start] + replacement + result[end:]
  return result


class FixRule(ABC):
  """
  Abstract base for an automated source rewrite.

  Attributes:
      rule_id (str): Registry key, set by `register_fix_rule`.
      description (str): Human readable summary.
      tier (SafetyTier): How much the rewrite risks changing behaviour.
      priority (int): Lower runs first.
  """

  rule_id: str = ""
  description: str = ""
  tier: SafetyTier = SafetyTier.SAFE
  priority: int = 100

  def __init__(self, config: Optional[LintConfig] = None) -> None:
    self.config = config or LintConfig()

  @abstractmethod
  def applies(self, source: str, analysis: SourceAnalysis) -> bool:
    """
    Checks whether the rule has something to fix.

    Args:
        source (str): Current source text.
        analysis (SourceAnalysis): Analysis of `source`.

    Returns:
        bool: True if `apply` would change the text.
    """

  @abstractmethod
  def apply(self, source: str, analysis: SourceAnalysis) -> FixOutcome:
    """
    Rewrites the source.

    Args:
        source (str): Current source text.
        analysis (SourceAnalysis): Analysis of `source`.

    Returns:
        FixOutcome: The rewritten text and a change description.

    Raises:
        FixApplicationError: If the transform cannot run.
    """

  def __repr__(self) -> str:
    return f"<{type(self).__name__} {self.rule_id} ({self.tier.value})>"


_RULE_REGISTRY: Dict[str, Type[FixRule]] = {}


def register_fix_rule(rule_id: str):
  """
  Class decorator registering a fix rule under `rule_id`.

  Args:
      rule_id (str): Stable kebab-case identifier.
  """

  def wrapper(cls):
    cls.rule_id = rule_id
    _RULE_REGISTRY[rule_id] = cls
    return cls

  return wrapper


def available_rules() -> List[str]:
  """
  Returns registered rule ids in priority order.

  Returns:
      List[str]: Rule identifiers.
  """
  return [cls.rule_id for cls in sorted(_RULE_REGISTRY.values(), key=lambda c: (c.priority, c.rule_id))]


def get_rule(rule_id: str, config: Optional[LintConfig] = None) -> Optional[FixRule]:
  cls = _RULE_REGISTRY.get(rule_id)
  if cls:
    return cls(config)
  return None


class FixRuleEngine:
  """
  Priority-ordered view of the registered rules permitted by a fix mode.
  """

  def __init__(self, mode: FixMode = FixMode.MODERATE, config: Optional[LintConfig] = None) -> None:
    """
    Args:
        mode (FixMode): Which safety tiers may run.
        config (Optional[LintConfig]): Settings handed to each rule.
    """
    self.mode = FixMode(mode)
    allowed = self.mode.allowed_tiers
    self.rules: List[FixRule] = []
    for rule_id in available_rules():
      rule = get_rule(rule_id, config)
      if rule is not None and rule.tier in allowed:
        self.rules.append(rule)

  def select(self, analysis: SourceAnalysis, disabled: Optional[Set[str]] = None) -> Optional[FixRule]:
    """
    Finds the first permitted rule whose predicate holds.

    Args:
        analysis (SourceAnalysis): Analysis of the current source.
        disabled (Optional[Set[str]]): Rule ids to skip.

    Returns:
        Optional[FixRule]: The rule to apply next, or None.
    """
    disabled = disabled or set()
    for rule in self.rules:
      if rule.rule_id in disabled:
        continue
      if rule.applies(analysis.source, analysis):
        return rule
    return None

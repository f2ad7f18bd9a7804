"""
Fixes Package.

Importing the package registers the built-in rules.
"""

from faust_lint.fixes import rules  # noqa: F401
from faust_lint.fixes.base import FixOutcome, FixRule, FixRuleEngine, available_rules, get_rule, register_fix_rule
from faust_lint.fixes.orchestrator import AutoFixOrchestrator, FixSession, fix_file

__all__ = [
  "AutoFixOrchestrator",
  "FixOutcome",
  "FixRule",
  "FixRuleEngine",
  "FixSession",
  "available_rules",
  "fix_file",
  "get_rule",
  "register_fix_rule",
]

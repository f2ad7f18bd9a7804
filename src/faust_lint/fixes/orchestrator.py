"""
Auto-Fix Orchestrator.

Drives the fix rules to a fixed point:

1.  Analyze the current source.
2.  Pick the first permitted rule whose predicate holds; stop if none does.
3.  Apply it and re-analyze the result.
4.  Accept the rewrite only if the text changed, the rule no longer applies,
    and the quality score did not drop. Otherwise record a failure and disable
    the rule for the rest of the session.

The loop is bounded by an iteration cap and an optional wall-clock budget. When
a backup path is given, the original text is written to it (flushed and
fsync'ed) before the first rewrite is accepted.
"""

import difflib
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Set, Union

from faust_lint.analysis.pipeline import SourceAnalysis, analyze_source, check_size
from faust_lint.config import LintConfig
from faust_lint.enums import FixMode
from faust_lint.errors import FixApplicationError
from faust_lint.fixes.base import FixRule, FixRuleEngine
from faust_lint.models import AppliedFix, FixFailure, FixReport
from faust_lint.utils.console import log_info, log_warning


STOP_CONVERGED = "converged"
STOP_ITERATION_CAP = "iteration-cap"
STOP_TIME_BUDGET = "time-budget"


@dataclass
class FixSession:
  """
  Mutable state of one fix run.

  Attributes:
      original_source (str): Text the session started from.
      current_source (str): Text after the accepted rewrites so far.
      applied_fixes (List[AppliedFix]): Accepted rewrites in order.
      failures (List[FixFailure]): Rejected or failed rewrites.
      iteration_count (int): Accepted rewrites. Rejected attempts do not count
          toward the cap, since each one disables its rule.
      converged (bool): True once no permitted rule applies.
      stop_reason (str): Why the loop ended.
      backup_path (Optional[Path]): Where the original was saved, once written.
  """

  original_source: str
  current_source: str
  applied_fixes: List[AppliedFix] = field(default_factory=list)
  failures: List[FixFailure] = field(default_factory=list)
  iteration_count: int = 0
  converged: bool = False
  stop_reason: str = STOP_CONVERGED
  backup_path: Optional[Path] = None
  disabled: Set[str] = field(default_factory=set)


def write_backup(path: Path, text: str) -> None:
  """
  Durably writes `text` to `path`.

  Args:
      path (Path): Backup destination.
      text (str): Content to save.
  """
  with open(path, "w", encoding="utf-8") as f:
    f.write(text)
    f.flush()
    os.fsync(f.fileno())


def unified_diff(original: str, fixed: str, name: str = "source") -> str:
  """
  Renders a unified diff between two versions of a source.

  Args:
      original (str): Text before fixing.
      fixed (str): Text after fixing.
      name (str): File label used in the diff header.

  Returns:
      str: The diff, empty if nothing changed.
  """
  if original == fixed:
    return ""
  return "".join(
    difflib.unified_diff(
      original.splitlines(keepends=True),
      fixed.splitlines(keepends=True),
      fromfile=f"a/{name}",
      tofile=f"b/{name}",
    )
  )


class AutoFixOrchestrator:
  """
  Iterative rule application with acceptance guards.
  """

  def __init__(
    self,
    mode: Union[FixMode, str] = FixMode.MODERATE,
    config: Optional[LintConfig] = None,
    clock: Callable[[], float] = time.monotonic,
  ) -> None:
    """
    Args:
        mode (Union[FixMode, str]): Which safety tiers may run.
        config (Optional[LintConfig]): Settings (iteration cap, time budget, policies).
        clock (Callable[[], float]): Monotonic time source for the budget.
    """
    self.config = config or LintConfig()
    self.mode = FixMode(mode)
    self.engine = FixRuleEngine(self.mode, self.config)
    self.clock = clock

  def run(self, source: str, backup_path: Optional[Path] = None, name: str = "source") -> FixReport:
    """
    Fixes a source until no permitted rule applies or a limit is reached.

    Args:
        source (str): Faust source text.
        backup_path (Optional[Path]): Where to save the original before the first accepted rewrite.
        name (str): Label used in the diff header.

    Returns:
        FixReport: The outcome of the session.

    Raises:
        SourceTooLargeError: If the source exceeds `max_source_bytes`.
        OSError: If the backup cannot be written.
    """
    check_size(source, self.config)
    session = FixSession(original_source=source, current_source=source)
    analysis = analyze_source(source, self.config)
    score_before = analysis.score
    started = self.clock()
    budget = self.config.time_budget

    while True:
      if session.iteration_count >= self.config.max_iterations:
        session.converged = self.engine.select(analysis, session.disabled) is None
        session.stop_reason = STOP_CONVERGED if session.converged else STOP_ITERATION_CAP
        if not session.converged:
          log_warning(f"Fixing stopped after {session.iteration_count} iterations without converging")
        break

      if budget is not None and self.clock() - started > budget:
        session.converged = False
        session.stop_reason = STOP_TIME_BUDGET
        log_warning(f"Fixing stopped: time budget of {budget}s exceeded")
        break

      rule = self.engine.select(analysis, session.disabled)
      if rule is None:
        session.converged = True
        session.stop_reason = STOP_CONVERGED
        break

      analysis = self._attempt(session, rule, analysis, backup_path)

    return FixReport(
      original_source=session.original_source,
      fixed_source=session.current_source,
      applied_fixes=session.applied_fixes,
      failures=session.failures,
      iteration_count=session.iteration_count,
      converged=session.converged,
      stop_reason=session.stop_reason,
      backup_path=session.backup_path,
      score_before=score_before,
      score_after=analysis.score,
      diff=unified_diff(session.original_source, session.current_source, name),
    )

  def _attempt(
    self,
    session: FixSession,
    rule: FixRule,
    analysis: SourceAnalysis,
    backup_path: Optional[Path],
  ) -> SourceAnalysis:
    """
    Applies one rule and accepts or rejects the result.

    Returns:
        SourceAnalysis: Analysis of the session's current source afterwards.
    """
    current = session.current_source
    try:
      outcome = rule.apply(current, analysis)
    except FixApplicationError as e:
      self._reject(session, rule, str(e))
      return analysis

    if not outcome.ok:
      self._reject(session, rule, outcome.summary or "rule reported failure")
      return analysis
    if outcome.new_source == current:
      self._reject(session, rule, "rewrite left the source unchanged")
      return analysis

    candidate = analyze_source(outcome.new_source, self.config)
    if rule.applies(candidate.source, candidate):
      self._reject(session, rule, "rule still applies after its own rewrite")
      return analysis
    if candidate.score < analysis.score:
      self._reject(session, rule, f"quality score would drop from {analysis.score} to {candidate.score}")
      return analysis

    if backup_path is not None and session.backup_path is None:
      write_backup(backup_path, session.original_source)
      session.backup_path = backup_path

    session.current_source = outcome.new_source
    session.iteration_count += 1
    session.applied_fixes.append(
      AppliedFix(
        rule_id=rule.rule_id,
        tier=rule.tier,
        summary=outcome.summary,
        changes=list(outcome.changes),
        score_before=analysis.score,
        score_after=candidate.score,
      )
    )
    log_info(f"Applied {rule.rule_id}: {outcome.summary}")
    return candidate

  def _reject(self, session: FixSession, rule: FixRule, reason: str) -> None:
    session.failures.append(FixFailure(rule_id=rule.rule_id, reason=reason))
    session.disabled.add(rule.rule_id)
    log_warning(f"Rejected {rule.rule_id}: {reason}")


def fix_file(
  path: Union[str, Path],
  mode: Union[FixMode, str] = FixMode.MODERATE,
  config: Optional[LintConfig] = None,
  backup: bool = True,
  write: bool = True,
) -> FixReport:
  """
  Fixes a file in place.

  Args:
      path (Union[str, Path]): The `.dsp` file.
      mode (Union[FixMode, str]): Which safety tiers may run.
      config (Optional[LintConfig]): Settings; `backup_suffix` names the backup file.
      backup (bool): Save the original next to the file before changing it.
      write (bool): Write the fixed text back. False gives a preview.

  Returns:
      FixReport: The outcome of the session.
  """
  config = config or LintConfig()
  path = Path(path)
  source = path.read_text(encoding="utf-8")

  backup_path = path.with_name(path.name + config.backup_suffix) if backup and write else None
  report = AutoFixOrchestrator(mode, config).run(source, backup_path=backup_path, name=path.name)

  if write and report.changed:
    path.write_text(report.fixed_source, encoding="utf-8")
  return report

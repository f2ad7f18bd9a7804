"""
Tests for the Auto-Fix Orchestrator.

Verifies:
1.  End-to-end fixing scenarios and convergence.
2.  Idempotence and monotonic quality of accepted rewrites.
3.  Acceptance guards (unchanged text, still-applies, score drop, exceptions).
4.  Iteration cap and time budget.
5.  Backups and in-place file fixing.
"""

from unittest.mock import MagicMock

import pytest

import faust_lint
from faust_lint.analysis.pipeline import analyze_source
from faust_lint.config import LintConfig
from faust_lint.enums import FixMode, SafetyTier
from faust_lint.errors import FixApplicationError, SourceTooLargeError
from faust_lint.fixes.base import FixOutcome, FixRule, register_fix_rule
from faust_lint.fixes.orchestrator import AutoFixOrchestrator, fix_file, unified_diff

MESSY = '// synth\nFreq = hslider("freq", 5, 20, 2000, 1)\nosc1 = os.osc(Freq);'

MESSY_FIXED = (
  "// synth\n"
  'import("stdfaust.lib");\n'
  "\n"
  'Freq = hslider("freq", 20, 20, 2000, 1);\n'
  "osc1 = os.osc(Freq);\n"
  "\n"
  "process = osc1;\n"
)


def test_clean_source_needs_no_fixes():
  report = faust_lint.fix("process = _;")
  assert faust_lint.analyze("process = _;").count("error") == 0
  assert report.applied_fixes == []
  assert report.failures == []
  assert report.converged
  assert report.stop_reason == "converged"
  assert not report.changed
  assert report.diff == ""


def test_missing_import_with_custom_prefix():
  config = LintConfig(library_prefixes={"lib": "stdfaust.lib"})
  report = faust_lint.fix("freq = 440;\nprocess = lib.osc(freq);", mode="safe", config=config)

  assert [f.rule_id for f in report.applied_fixes] == ["add-missing-import"]
  assert report.fixed_source == 'import("stdfaust.lib");\n\nfreq = 440;\nprocess = lib.osc(freq);'

  after = analyze_source(report.fixed_source, config)
  assert after.program.tokens[0].text == "import"
  assert not after.has("missing-import")


def test_missing_import_with_standard_prefix():
  report = faust_lint.fix("freq = 440;\nprocess = os.osc(freq);", mode="safe")
  assert [f.rule_id for f in report.applied_fixes] == ["add-missing-import"]
  assert report.converged


def test_slider_clamp_is_idempotent():
  code = 'import("stdfaust.lib");\ncutoff = hslider("cutoff", 50, 100, 1000, 1);\nprocess = fi.lowpass(2, cutoff);'
  first = faust_lint.fix(code)
  assert [f.rule_id for f in first.applied_fixes] == ["clamp-slider-default"]
  assert 'hslider("cutoff", 100, 100, 1000, 1)' in first.fixed_source

  second = faust_lint.fix(first.fixed_source)
  assert second.applied_fixes == []
  assert second.fixed_source == first.fixed_source


def test_safe_mode_skips_risky_rename():
  code = 'import("stdfaust.lib");\nMyOsc = os.osc(440);\nprocess = MyOsc;'

  safe = faust_lint.fix(code, mode=FixMode.SAFE)
  assert safe.applied_fixes == []
  assert safe.converged

  full = faust_lint.fix(code, mode=FixMode.ALL)
  assert [f.rule_id for f in full.applied_fixes] == ["rename-uppercase-identifiers"]
  assert full.fixed_source == 'import("stdfaust.lib");\nmyosc = os.osc(440);\nprocess = myosc;'
  assert full.applied_fixes[0].tier == SafetyTier.RISKY


def test_messy_source_converges():
  report = faust_lint.fix(MESSY, mode="moderate")

  assert [f.rule_id for f in report.applied_fixes] == [
    "add-missing-import",
    "clamp-slider-default",
    "add-missing-semicolon",
    "add-missing-process",
  ]
  assert report.fixed_source == MESSY_FIXED
  assert report.converged
  assert report.iteration_count == 4
  assert report.score_after == 100
  assert report.score_before < report.score_after
  assert report.failures == []


def test_accepted_fixes_never_lower_the_score():
  report = faust_lint.fix(MESSY, mode="moderate")
  for applied in report.applied_fixes:
    assert applied.score_after >= applied.score_before


def test_fixing_twice_is_a_no_op():
  first = faust_lint.fix(MESSY, mode="moderate")
  second = faust_lint.fix(first.fixed_source, mode="moderate")
  assert second.applied_fixes == []
  assert second.fixed_source == first.fixed_source


def test_diff_describes_changes():
  report = faust_lint.fix("freq = 440;\nprocess = os.osc(freq);", mode="safe")
  assert report.diff.startswith("--- a/source\n+++ b/source\n")
  assert '+import("stdfaust.lib");' in report.diff


def test_unified_diff_uses_name():
  diff = unified_diff("a\n", "b\n", "synth.dsp")
  assert "--- a/synth.dsp" in diff
  assert "-a" in diff and "+b" in diff
  assert unified_diff("same", "same") == ""


# --- Limits ---


def test_iteration_cap():
  report = AutoFixOrchestrator("moderate", LintConfig(max_iterations=1)).run(MESSY)
  assert report.iteration_count == 1
  assert not report.converged
  assert report.stop_reason == "iteration-cap"
  assert len(report.applied_fixes) == 1


def test_iteration_cap_reached_exactly_at_fixed_point():
  report = AutoFixOrchestrator("moderate", LintConfig(max_iterations=4)).run(MESSY)
  assert report.iteration_count == 4
  assert report.converged
  assert report.stop_reason == "converged"


def test_rejected_attempts_do_not_use_up_the_cap():
  _throwaway_rule("noop", lambda s: True, lambda s: FixOutcome(ok=True, new_source=s))
  report = AutoFixOrchestrator("moderate", LintConfig(max_iterations=4)).run(MESSY)

  assert [f.rule_id for f in report.failures] == ["noop"]
  assert len(report.applied_fixes) == 4
  assert report.iteration_count == 4
  assert report.converged
  assert report.fixed_source == MESSY_FIXED


def test_time_budget():
  clock = MagicMock(side_effect=[0.0, 5.0])
  orchestrator = AutoFixOrchestrator("moderate", LintConfig(time_budget=1.0), clock=clock)
  report = orchestrator.run(MESSY)

  assert report.stop_reason == "time-budget"
  assert not report.converged
  assert report.iteration_count == 0
  assert report.fixed_source == MESSY


def test_oversized_source_rejected():
  with pytest.raises(SourceTooLargeError):
    AutoFixOrchestrator(config=LintConfig(max_source_bytes=5)).run("process = _;")


# --- Guards ---


def _throwaway_rule(rule_id, applies, apply):
  @register_fix_rule(rule_id)
  class _Rule(FixRule):
    tier = SafetyTier.SAFE
    priority = 0

    def applies(self, source, analysis):
      return applies(source)

    def apply(self, source, analysis):
      return apply(source)

  return _Rule


def test_unchanged_rewrite_is_rejected():
  _throwaway_rule("noop", lambda s: True, lambda s: FixOutcome(ok=True, new_source=s, summary="nothing"))
  report = faust_lint.fix("process = _;")

  assert [f.rule_id for f in report.failures] == ["noop"]
  assert "unchanged" in report.failures[0].reason
  assert report.converged


def test_rule_that_still_applies_is_rejected():
  _throwaway_rule("grow", lambda s: True, lambda s: FixOutcome(ok=True, new_source=s + "\n"))
  report = faust_lint.fix("process = _;")
  assert [f.rule_id for f in report.failures] == ["grow"]
  assert "still applies" in report.failures[0].reason
  assert report.fixed_source == "process = _;"


def test_score_drop_is_rejected():
  _throwaway_rule(
    "break-it",
    lambda s: not s.rstrip().endswith(")"),
    lambda s: FixOutcome(ok=True, new_source=s + "\n)"),
  )
  report = faust_lint.fix("process = _;")
  assert [f.rule_id for f in report.failures] == ["break-it"]
  assert "score" in report.failures[0].reason
  assert report.fixed_source == "process = _;"


def test_raising_rule_is_recorded_and_disabled():
  def explode(source):
    raise FixApplicationError("cannot do it")

  _throwaway_rule("explode", lambda s: True, explode)
  report = faust_lint.fix("process = _;")

  assert [(f.rule_id, f.reason) for f in report.failures] == [("explode", "cannot do it")]
  assert report.iteration_count == 0
  assert report.converged


def test_rule_reporting_failure_is_rejected():
  _throwaway_rule("gives-up", lambda s: True, lambda s: FixOutcome(ok=False, new_source=s, summary="no luck"))
  report = faust_lint.fix("process = _;")
  assert [(f.rule_id, f.reason) for f in report.failures] == [("gives-up", "no luck")]


def test_rejections_are_logged(captured_console):
  _throwaway_rule("noop", lambda s: True, lambda s: FixOutcome(ok=True, new_source=s))
  faust_lint.fix("process = _;")
  assert "Rejected noop" in captured_console.getvalue()


# --- Backups and files ---


def test_backup_written_before_first_accepted_fix(tmp_path):
  backup = tmp_path / "synth.dsp.backup"
  report = faust_lint.fix(MESSY, backup_path=backup)
  assert report.backup_path == backup
  assert backup.read_text(encoding="utf-8") == MESSY


def test_no_backup_when_nothing_changes(tmp_path):
  backup = tmp_path / "clean.dsp.backup"
  report = faust_lint.fix("process = _;", backup_path=backup)
  assert report.backup_path is None
  assert not backup.exists()


def test_fix_file_in_place(write_dsp):
  path = write_dsp("synth.dsp", MESSY)
  report = fix_file(path, mode="moderate")

  assert path.read_text(encoding="utf-8") == MESSY_FIXED
  backup = path.with_name("synth.dsp.backup")
  assert backup.read_text(encoding="utf-8") == MESSY
  assert report.backup_path == backup
  assert "--- a/synth.dsp" in report.diff


def test_fix_file_preview_leaves_disk_untouched(write_dsp):
  path = write_dsp("synth.dsp", MESSY)
  report = fix_file(path, mode="moderate", write=False)

  assert report.changed
  assert path.read_text(encoding="utf-8") == MESSY
  assert not path.with_name("synth.dsp.backup").exists()


def test_fix_file_custom_backup_suffix(write_dsp):
  path = write_dsp("synth.dsp", MESSY)
  fix_file(path, config=LintConfig(backup_suffix=".orig"))
  assert path.with_name("synth.dsp.orig").exists()


def test_fix_file_without_backup(write_dsp):
  path = write_dsp("synth.dsp", MESSY)
  report = fix_file(path, backup=False)
  assert report.backup_path is None
  assert not path.with_name("synth.dsp.backup").exists()
  assert path.read_text(encoding="utf-8") == MESSY_FIXED


def test_byte_order_mark_is_kept_and_import_not_duplicated(write_dsp):
  imported = write_dsp("imported.dsp", '\ufeffimport("stdfaust.lib");\nprocess = os.osc(440);\n')
  report = fix_file(imported, mode="all")
  assert report.applied_fixes == []
  assert not imported.with_name("imported.dsp.backup").exists()

  bare = write_dsp("bare.dsp", "\ufeffprocess = os.osc(440);\n")
  report = fix_file(bare, mode="all")
  text = bare.read_text(encoding="utf-8")
  assert [f.rule_id for f in report.applied_fixes] == ["add-missing-import"]
  assert text.startswith('\ufeffimport("stdfaust.lib");')
  assert text.count("import(") == 1

"""
Tests for the built-in fix rules and the rule engine.

Verifies:
1.  Registry contents, priority order and tier filtering.
2.  Each rule's predicate and transform in isolation.
3.  Transforms only touch code, never comments or string literals.
"""

import pytest

from faust_lint.analysis.pipeline import analyze_source
from faust_lint.config import LintConfig
from faust_lint.enums import FixMode, ProcessSelectionPolicy, SafetyTier
from faust_lint.errors import FixApplicationError
from faust_lint.fixes.base import FixRuleEngine, apply_edits, available_rules, get_rule
from faust_lint.fixes.rules import (
  AddMissingImport,
  AddMissingProcess,
  AddMissingSemicolon,
  ClampSliderDefault,
  RenameUpperCaseIdentifiers,
)


def run_rule(rule, code, config=None):
  analysis = analyze_source(code, config)
  assert rule.applies(code, analysis)
  return rule.apply(code, analysis)


# --- Registry / Engine ---


def test_available_rules_in_priority_order():
  assert available_rules() == [
    "add-missing-import",
    "clamp-slider-default",
    "add-missing-semicolon",
    "add-missing-process",
    "rename-uppercase-identifiers",
  ]


def test_get_rule():
  rule = get_rule("add-missing-import")
  assert isinstance(rule, AddMissingImport)
  assert rule.tier == SafetyTier.SAFE
  assert get_rule("does-not-exist") is None


@pytest.mark.parametrize(
  "mode, expected",
  [
    (FixMode.SAFE, ["add-missing-import", "clamp-slider-default"]),
    (
      FixMode.MODERATE,
      ["add-missing-import", "clamp-slider-default", "add-missing-semicolon", "add-missing-process"],
    ),
    ("all", available_rules()),
  ],
)
def test_engine_filters_by_mode(mode, expected):
  assert [r.rule_id for r in FixRuleEngine(mode).rules] == expected


def test_engine_select_respects_disabled():
  engine = FixRuleEngine(FixMode.ALL)
  analysis = analyze_source("Gain = os.osc(1);")
  assert engine.select(analysis).rule_id == "add-missing-import"
  assert engine.select(analysis, {"add-missing-import"}).rule_id == "add-missing-process"


def test_engine_select_none_for_clean_source():
  assert FixRuleEngine(FixMode.ALL).select(analyze_source("process = _;")) is None


def test_apply_edits_back_to_front():
  assert apply_edits("abcdef", [(0, 1, "X"), (3, 3, "--"), (5, 6, "")]) == "Xbc--de"


# --- AddMissingImport ---


def test_add_missing_import_keeps_leading_comment():
  code = "// my synth\nprocess = os.osc(440) : fi.lowpass(1, 500);"
  outcome = run_rule(AddMissingImport(), code)

  assert outcome.ok
  assert outcome.new_source == (
    '// my synth\nimport("stdfaust.lib");\n\nprocess = os.osc(440) : fi.lowpass(1, 500);'
  )
  assert outcome.changes == ['import("stdfaust.lib");']


def test_add_missing_import_multiple_libraries():
  config = LintConfig(library_prefixes={"os": "stdfaust.lib", "my": "mine.lib"})
  outcome = run_rule(AddMissingImport(config), "process = os.osc(1) + my.thing;", config)
  assert outcome.new_source.startswith('import("stdfaust.lib");\nimport("mine.lib");\n\n')


def test_add_missing_import_without_subject_raises():
  code = "process = os.osc(1);"
  analysis = analyze_source(code)
  for diag in analysis.of("missing-import"):
    diag.subject = None
  with pytest.raises(FixApplicationError):
    AddMissingImport().apply(code, analysis)


# --- ClampSliderDefault ---


def test_clamp_slider_to_lower_bound():
  code = 'cutoff = hslider("cutoff", 50, 100, 1000, 1);\nprocess = cutoff;'
  outcome = run_rule(ClampSliderDefault(), code)
  assert outcome.new_source == 'cutoff = hslider("cutoff", 100, 100, 1000, 1);\nprocess = cutoff;'


def test_clamp_slider_to_upper_bound_copies_literal():
  code = 'process = vslider("g", 2, 0, 1.0, 0.1) + nentry("n", 3, 0, 10, 1);'
  outcome = run_rule(ClampSliderDefault(), code)
  assert outcome.new_source == 'process = vslider("g", 1.0, 0, 1.0, 0.1) + nentry("n", 3, 0, 10, 1);'
  assert len(outcome.changes) == 1


def test_clamp_ignores_inverted_range():
  analysis = analyze_source('process = hslider("x", 5, 10, 0, 1);')
  assert not ClampSliderDefault().applies(analysis.source, analysis)


# --- AddMissingSemicolon ---


def test_add_missing_semicolon_before_trailing_comment():
  code = "a = 1 // one\nprocess = a;"
  outcome = run_rule(AddMissingSemicolon(), code)
  assert outcome.new_source == "a = 1; // one\nprocess = a;"


def test_add_missing_semicolon_multiple_lines():
  code = "a = 1\nb = a\nprocess = b;"
  outcome = run_rule(AddMissingSemicolon(), code)
  assert outcome.new_source == "a = 1;\nb = a;\nprocess = b;"


# --- AddMissingProcess ---


@pytest.mark.parametrize(
  "policy, target",
  [
    (ProcessSelectionPolicy.LAST_DEFINED, "c"),
    (ProcessSelectionPolicy.FIRST_DEFINED, "a"),
    (ProcessSelectionPolicy.LAST_UNREFERENCED, "out"),
  ],
)
def test_add_missing_process_uses_policy(policy, target):
  code = "a = 1;\nout = a + c;\nc = 2;"
  config = LintConfig(process_policy=policy)
  outcome = run_rule(AddMissingProcess(config), code, config)
  assert outcome.new_source.endswith(f"\n\nprocess = {target};\n")


def test_add_missing_process_separator():
  outcome = run_rule(AddMissingProcess(), "a = 1;\n")
  assert outcome.new_source == "a = 1;\n\nprocess = a;\n"


def test_add_missing_process_needs_a_definition():
  analysis = analyze_source("// nothing here\n")
  assert not AddMissingProcess().applies(analysis.source, analysis)


# --- RenameUpperCaseIdentifiers ---


def test_rename_is_token_level():
  code = 'Gain = 0.5;\nprocess = _ * Gain; // Gain stays\nlabel = "Gain";'
  outcome = run_rule(RenameUpperCaseIdentifiers(), code)
  assert outcome.new_source == 'gain = 0.5;\nprocess = _ * gain; // Gain stays\nlabel = "Gain";'
  assert outcome.changes == ["Gain -> gain"]


def test_rename_skips_member_access():
  code = "Osc = 1;\nprocess = os.Osc + Osc;"
  outcome = run_rule(RenameUpperCaseIdentifiers(), code)
  assert outcome.new_source == "osc = 1;\nprocess = os.Osc + osc;"


def test_rename_skips_collisions_and_keywords():
  code = "Gain = 1;\ngain = 2;\nProcess = 3;\nprocess = Gain + gain + Process;"
  analysis = analyze_source(code)
  assert not RenameUpperCaseIdentifiers().applies(code, analysis)


def test_rename_skips_builtin_primitives():
  code = 'import("stdfaust.lib");\nSin = os.osc(440);\nButton = 1;\nprocess = Sin*Button;'
  analysis = analyze_source(code)
  assert not RenameUpperCaseIdentifiers().applies(code, analysis)


def test_rename_keeps_primitive_names_but_renames_the_rest():
  code = "Mem = 1;\nMyGain = 2;\nprocess = Mem + MyGain;"
  outcome = run_rule(RenameUpperCaseIdentifiers(), code)
  assert outcome.new_source == "Mem = 1;\nmygain = 2;\nprocess = Mem + mygain;"
  assert outcome.changes == ["MyGain -> mygain"]


def test_rename_skips_two_names_with_same_target():
  code = "MyGain = 1;\nMYGAIN = 2;\nprocess = MyGain + MYGAIN;"
  outcome = run_rule(RenameUpperCaseIdentifiers(), code)
  assert outcome.new_source == "mygain = 1;\nMYGAIN = 2;\nprocess = mygain + MYGAIN;"

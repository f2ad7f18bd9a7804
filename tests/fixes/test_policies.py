"""
Tests for process selection policies.
"""

import pytest

from faust_lint.analysis.parser import StructuralAnalyzer
from faust_lint.enums import ProcessSelectionPolicy
from faust_lint.fixes.policies import (
  select_first_defined,
  select_last_defined,
  select_last_unreferenced,
  select_process_target,
)


def program_of(code):
  return StructuralAnalyzer().analyze(code).program


def test_empty_program_has_no_target():
  program = program_of("")
  assert select_last_defined(program) is None
  assert select_first_defined(program) is None
  assert select_last_unreferenced(program) is None


def test_first_and_last():
  program = program_of("a = 1;\nb = 2;\nc = 3;")
  assert select_first_defined(program) == "a"
  assert select_last_defined(program) == "c"


def test_underscore_names_are_skipped():
  program = program_of("voice = 1;\n_debug = voice;")
  assert select_last_defined(program) == "voice"
  assert select_last_unreferenced(program) == "voice"


def test_only_underscore_names_still_selectable():
  assert select_last_defined(program_of("_a = 1;")) == "_a"


def test_last_unreferenced_prefers_graph_top():
  program = program_of("out = voice * env;\nvoice = 1;\nenv = 2;")
  assert select_last_unreferenced(program) == "out"


def test_last_unreferenced_falls_back_when_all_referenced():
  program = program_of("a = b;\nb = a;")
  assert select_last_unreferenced(program) == "b"


def test_self_reference_is_ignored():
  program = program_of("loop = loop + 1;\nx = 2;\ny = x;")
  assert select_last_unreferenced(program) == "y"


@pytest.mark.parametrize("policy", list(ProcessSelectionPolicy))
def test_select_process_target_accepts_every_policy(policy):
  assert select_process_target(program_of("a = 1;"), policy) == "a"


def test_select_process_target_accepts_string_values():
  assert select_process_target(program_of("a = 1;\nb = 2;"), "first-defined") == "a"

"""
Tests for source metrics and the structure summary.
"""

from faust_lint.analysis.metrics import detect_patterns, nesting_depth, summarize_structure
from faust_lint.analysis.parser import StructuralAnalyzer
from faust_lint.analysis.tokens import tokenize

SYNTH = """import("stdfaust.lib");
freq = hslider("freq", 440, 20, 2000, 1);
tone = os.osc(freq) : fi.lowpass(2, 1000);
echo(d) = + ~ (@(d) * 0.5);
process = tone : echo(4800);
"""


def program_of(code):
  return StructuralAnalyzer().analyze(code).program


def test_nesting_depth():
  assert nesting_depth(tokenize("a + b")) == 0
  assert nesting_depth(tokenize("f(g(x), [y])")) == 2
  assert nesting_depth(tokenize("((((x))))")) == 4


def test_nesting_depth_tolerates_stray_closers():
  assert nesting_depth(tokenize(")) (x)")) == 1


def test_detect_patterns():
  found = {(p.definition, p.kind) for p in detect_patterns(program_of(SYNTH))}
  assert ("tone", "oscillator") in found
  assert ("tone", "filter") in found
  assert ("echo", "recursive") in found
  assert ("echo", "delay") in found
  assert not any(name == "freq" for name, _ in found)


def test_summarize_structure():
  summary = summarize_structure(program_of(SYNTH))

  assert summary.definition_count == 3
  assert summary.functions_with_params == 1
  assert summary.max_params == 1
  assert summary.max_nesting == 2
  assert summary.recursive_likely
  assert summary.max_expression_length >= summary.average_expression_length > 0


def test_summarize_empty_program():
  summary = summarize_structure(program_of("process = _;"))
  assert summary.definition_count == 0
  assert summary.patterns == []
  assert not summary.recursive_likely


def test_metrics_token_counts():
  result = StructuralAnalyzer().analyze("x = 1 $ 2;")
  metrics = result.metrics
  assert metrics.identifiers == 1
  assert metrics.numbers == 2
  assert metrics.unknown == 1
  assert metrics.operators == 2
  assert metrics.characters == 10
  assert not metrics.has_process


def test_metrics_for_empty_source():
  metrics = StructuralAnalyzer().analyze("").metrics
  assert metrics.lines == 0
  assert metrics.tokens_total == 0

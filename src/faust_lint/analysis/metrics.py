"""
Source Metrics and Structure Summary.

Computes the size/token statistics attached to every analysis and the
architecture overview (parameter counts, expression sizes, bracket nesting and
recognised DSP idioms) used by the `analyze --structure` report.
"""

from typing import Dict, List, Tuple

from faust_lint.analysis.nodes import Program
from faust_lint.analysis.tokens import CLOSE_BRACKETS, OPEN_BRACKETS, Token, TokenKind
from faust_lint.models import DetectedPattern, Metrics, StructureSummary

# (pattern kind, member or operator spellings that reveal it)
PATTERN_MARKERS: List[Tuple[str, Tuple[str, ...]]] = [
  ("filter", ("lowpass", "highpass", "bandpass", "resonlp", "resonhp", "tf2")),
  ("oscillator", ("osc", "sin", "sawtooth", "square", "triangle", "phasor")),
  ("envelope", ("en", "adsr", "ar", "asr", "envelope")),
  ("recursive", ("~",)),
  ("delay", ("@", "delay", "fdelay", "sdelay")),
]

_KIND_FIELDS: Dict[TokenKind, str] = {
  TokenKind.IDENTIFIER: "identifiers",
  TokenKind.KEYWORD: "keywords",
  TokenKind.NUMBER: "numbers",
  TokenKind.STRING: "strings",
  TokenKind.OPERATOR: "operators",
  TokenKind.UNKNOWN: "unknown",
}


def compute_metrics(source: str, program: Program) -> Metrics:
  """
  Computes size and token statistics.

  Args:
      source (str): The analysed text.
      program (Program): Its structural model.

  Returns:
      Metrics: Counts of lines, characters, statements and tokens per kind.
  """
  counts = {name: 0 for name in _KIND_FIELDS.values()}
  for token in program.tokens:
    counts[_KIND_FIELDS[token.kind]] += 1

  return Metrics(
    lines=source.count("\n") + 1 if source else 0,
    characters=len(source),
    imports=len(program.imports),
    definitions=len(program.definitions),
    has_process=program.process is not None,
    tokens_total=len(program.tokens),
    **counts,
  )


def nesting_depth(tokens: List[Token]) -> int:
  """
  Maximum bracket nesting reached over a token run.

  Args:
      tokens (List[Token]): Tokens to scan.

  Returns:
      int: The deepest level (0 for bracket-free runs).
  """
  depth = 0
  deepest = 0
  for token in tokens:
    if token.kind != TokenKind.OPERATOR:
      continue
    if token.text in OPEN_BRACKETS:
      depth += 1
      deepest = max(deepest, depth)
    elif token.text in CLOSE_BRACKETS:
      depth = max(depth - 1, 0)
  return deepest


def detect_patterns(program: Program) -> List[DetectedPattern]:
  """
  Recognises common DSP idioms inside each definition.

  Args:
      program (Program): The structural model.

  Returns:
      List[DetectedPattern]: One entry per (definition, idiom) hit, in source order.
  """
  found: List[DetectedPattern] = []
  for definition in program.definitions:
    texts = {t.text for t in program.span_tokens(definition.span)}
    for kind, markers in PATTERN_MARKERS:
      if texts.intersection(markers):
        found.append(DetectedPattern(kind=kind, definition=definition.name))
  return found


def summarize_structure(program: Program) -> StructureSummary:
  """
  Builds the architecture and complexity overview of a program.

  Args:
      program (Program): The structural model.

  Returns:
      StructureSummary: Aggregated statistics over all definitions.
  """
  definitions = program.definitions
  if not definitions:
    return StructureSummary()

  lengths = [d.span_length for d in definitions]
  depths = [nesting_depth(program.span_tokens(d.span)) for d in definitions]

  return StructureSummary(
    definition_count=len(definitions),
    functions_with_params=sum(1 for d in definitions if d.parameters),
    max_params=max(len(d.parameters) for d in definitions),
    max_expression_length=max(lengths),
    average_expression_length=sum(lengths) / len(lengths),
    max_nesting=max(depths),
    average_nesting=sum(depths) / len(depths),
    recursive_likely=any(t.is_op("~") for d in definitions for t in program.span_tokens(d.span)),
    patterns=detect_patterns(program),
  )

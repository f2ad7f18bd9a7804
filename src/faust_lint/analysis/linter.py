"""
Faust Linter.

Style and correctness rules evaluated over the output of the structural pass.
Every rule is a plain function `(LintContext) -> List[Diagnostic]` so it can be
tested on its own; `Linter` runs them in a fixed order.

Rules that scan raw text use the shared `CleanedSource` of the analysis, never
the original text, so nothing inside a comment or string literal can match.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from faust_lint.analysis.nodes import Program
from faust_lint.analysis.parser import StructuralAnalysis
from faust_lint.analysis.tokens import CleanedSource, TokenKind
from faust_lint.config import DEFAULT_LIBRARY_PREFIXES
from faust_lint.enums import DiagnosticOrigin, Severity
from faust_lint.models import Diagnostic

_NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"

# Label bodies are blanked in the cleaned view, so `[^"\n]*` only sees spaces.
SLIDER_PATTERN = re.compile(
  r"\b(?P<kind>hslider|vslider|nentry)\s*\(\s*"
  r'(?P<label>"[^"\n]*")\s*,\s*'
  rf"(?P<init>{_NUMBER})\s*,\s*"
  rf"(?P<min>{_NUMBER})\s*,\s*"
  rf"(?P<max>{_NUMBER})\s*"
  rf"(?:,\s*(?P<step>{_NUMBER})\s*)?\)"
)

_STATEMENT_ENDINGS = (";", "{", "}")


@dataclass
class LintContext:
  """
  Inputs shared by all lint rules.

  Attributes:
      program (Program): Structural model.
      cleaned (CleanedSource): Comment/string-blanked view of the source.
      library_prefixes (Dict[str, str]): Environment prefix to owning library.
      complexity_threshold (int): Token count above which an expression is complex.
  """

  program: Program
  cleaned: CleanedSource
  library_prefixes: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LIBRARY_PREFIXES))
  complexity_threshold: int = 50


@dataclass
class SliderCall:
  """
  A range-constructor call (`hslider`, `vslider`, `nentry`) found in the source.

  Offsets index both the cleaned and the original text.

  Attributes:
      kind (str): Constructor name.
      label (str): Label text, read from the original source.
      line (int): Line of the constructor name.
      init (float): Default value.
      minimum (float): Lower bound.
      maximum (float): Upper bound.
      init_span (Tuple[int, int]): Offsets of the default value literal.
      min_text (str): Lower bound literal as written.
      max_text (str): Upper bound literal as written.
  """

  kind: str
  label: str
  line: int
  init: float
  minimum: float
  maximum: float
  init_span: Tuple[int, int]
  min_text: str
  max_text: str

  @property
  def inverted(self) -> bool:
    return self.minimum > self.maximum

  @property
  def out_of_range(self) -> bool:
    """True if the default lies outside well-ordered bounds."""
    return not self.inverted and not (self.minimum <= self.init <= self.maximum)

  def clamped_text(self) -> Optional[str]:
    """
    Returns the literal the default should become, or None if it is in range.
    """
    if not self.out_of_range:
      return None
    return self.min_text if self.init < self.minimum else self.max_text


def find_slider_calls(cleaned: CleanedSource) -> List[SliderCall]:
  """
  Finds every range-constructor call with literal numeric arguments.

  Args:
      cleaned (CleanedSource): Cleaned view of the source.

  Returns:
      List[SliderCall]: Calls in source order.
  """
  calls = []
  for match in SLIDER_PATTERN.finditer(cleaned.text):
    label_start, label_end = match.span("label")
    calls.append(
      SliderCall(
        kind=match.group("kind"),
        label=cleaned.original[label_start + 1 : label_end - 1],
        line=cleaned.line_of(match.start()),
        init=float(match.group("init")),
        minimum=float(match.group("min")),
        maximum=float(match.group("max")),
        init_span=match.span("init"),
        min_text=match.group("min"),
        max_text=match.group("max"),
      )
    )
  return calls


def _lint(
  severity: Severity,
  category: str,
  message: str,
  line: int,
  column: Optional[int] = None,
  suggestion: Optional[str] = None,
  subject: Optional[str] = None,
) -> Diagnostic:
  return Diagnostic(
    severity=severity,
    origin=DiagnosticOrigin.LINT,
    category=category,
    message=message,
    line=line,
    column=column,
    suggestion=suggestion,
    subject=subject,
  )


# --- Rules ---


def check_missing_imports(ctx: LintContext) -> List[Diagnostic]:
  """
  Flags `prefix.member` accesses whose owning library is not imported.

  A prefix that is defined locally, or used as a formal parameter, is not a
  library environment and is ignored. Prefixes missing from
  `ctx.library_prefixes` are not checked. One diagnostic per missing library,
  at its first use.
  """
  program = ctx.program
  tokens = program.tokens
  imported = set(program.library_names)
  local_names: Set[str] = set(program.definition_names)
  for definition in program.definitions:
    local_names.update(definition.parameters)

  diagnostics: List[Diagnostic] = []
  reported: Set[str] = set()
  for idx in range(len(tokens) - 2):
    tok = tokens[idx]
    if tok.kind != TokenKind.IDENTIFIER or not tokens[idx + 1].is_op("."):
      continue
    if tokens[idx + 2].kind != TokenKind.IDENTIFIER:
      continue
    if idx > 0 and tokens[idx - 1].is_op("."):
      continue

    library = ctx.library_prefixes.get(tok.text)
    if library is None or library in imported or library in reported or tok.text in local_names:
      continue

    reported.add(library)
    diagnostics.append(
      _lint(
        Severity.ERROR,
        "missing-import",
        f'"{tok.text}.{tokens[idx + 2].text}" is used but "{library}" is not imported',
        tok.line,
        tok.column,
        suggestion=f'import("{library}");',
        subject=library,
      )
    )
  return diagnostics


def check_unused_definitions(ctx: LintContext) -> List[Diagnostic]:
  """
  Flags definitions never referenced from another definition or the process.
  """
  program = ctx.program
  referenced: Set[str] = set()
  for definition in program.definitions:
    referenced.update(n for n in program.referenced_names(definition.span) if n != definition.name)
  if program.process is not None:
    referenced.update(program.referenced_names(program.process.span))

  diagnostics = []
  reported: Set[str] = set()
  for definition in program.definitions:
    name = definition.name
    if name.startswith("_") or name in referenced or name in reported:
      continue
    reported.add(name)
    diagnostics.append(
      _lint(
        Severity.WARNING,
        "unused-definition",
        f'"{name}" is defined but never used',
        definition.line,
        suggestion=f'Remove "{name}" or reference it from process',
        subject=name,
      )
    )
  return diagnostics


def check_missing_semicolons(ctx: LintContext) -> List[Diagnostic]:
  """
  Flags definitions and the process whose final line does not end a statement.

  Only statements the structural pass found unterminated are considered; their
  last line (cleaned, right-stripped) must not end in `;`, `{` or `}`.
  """
  program = ctx.program
  lines = ctx.cleaned.lines()

  statements: List[Tuple[str, int, bool]] = [(d.name, d.end_line, d.terminated) for d in program.definitions]
  if program.process is not None:
    statements.append(("process", program.process.end_line, program.process.terminated))

  diagnostics = []
  flagged: Set[int] = set()
  for name, end_line, terminated in statements:
    if terminated or end_line in flagged or not 1 <= end_line <= len(lines):
      continue
    text = lines[end_line - 1].rstrip()
    if not text or text.endswith(_STATEMENT_ENDINGS):
      continue
    flagged.add(end_line)
    diagnostics.append(
      _lint(
        Severity.WARNING,
        "missing-semicolon",
        f'Statement "{name}" is not terminated with ";"',
        end_line,
        suggestion="Add ';' at the end of the line",
        subject=name,
      )
    )
  return diagnostics


def check_naming_conventions(ctx: LintContext) -> List[Diagnostic]:
  """Flags definition names containing uppercase letters."""
  diagnostics = []
  seen: Set[str] = set()
  for definition in ctx.program.definitions:
    name = definition.name
    if name in seen or name == name.lower():
      continue
    seen.add(name)
    diagnostics.append(
      _lint(
        Severity.STYLE,
        "naming-convention",
        f'"{name}" should be lowercase',
        definition.line,
        suggestion=f'Rename to "{name.lower()}"',
        subject=name,
      )
    )
  return diagnostics


def check_slider_ranges(ctx: LintContext) -> List[Diagnostic]:
  """Flags slider defaults outside their range and inverted ranges."""
  diagnostics = []
  for call in find_slider_calls(ctx.cleaned):
    if call.inverted:
      diagnostics.append(
        _lint(
          Severity.ERROR,
          "slider-range-inverted",
          f'{call.kind} "{call.label}" has min {call.min_text} greater than max {call.max_text}',
          call.line,
          suggestion="Swap the bounds",
          subject=call.label,
        )
      )
    elif call.out_of_range:
      diagnostics.append(
        _lint(
          Severity.ERROR,
          "slider-default-out-of-range",
          f'{call.kind} "{call.label}" default {call.init:g} is outside [{call.min_text}, {call.max_text}]',
          call.line,
          suggestion=f"Use {call.clamped_text()} as default",
          subject=call.label,
        )
      )
  return diagnostics


def check_complex_expressions(ctx: LintContext) -> List[Diagnostic]:
  """Flags definitions whose expression exceeds the complexity threshold."""
  return [
    _lint(
      Severity.STYLE,
      "complex-expression",
      f'"{d.name}" has {d.span_length} tokens (threshold {ctx.complexity_threshold})',
      d.line,
      suggestion="Split into smaller definitions",
      subject=d.name,
    )
    for d in ctx.program.definitions
    if d.span_length > ctx.complexity_threshold
  ]


LINT_RULES: List[Tuple[str, Callable[[LintContext], List[Diagnostic]]]] = [
  ("missing-import", check_missing_imports),
  ("unused-definition", check_unused_definitions),
  ("missing-semicolon", check_missing_semicolons),
  ("naming-convention", check_naming_conventions),
  ("slider-range", check_slider_ranges),
  ("complex-expression", check_complex_expressions),
]


class Linter:
  """
  Runs all lint rules over a structural analysis.

  Missing imports are only detected for prefixes in `library_prefixes`, which
  maps an environment prefix to its library file. The built-in map covers the
  stdfaust environments (`os`, `fi`, `en`, ...); a project that reaches the
  standard library through another name extends it, e.g. with
  `{"lib": "stdfaust.lib"}`, via `[tool.faust_lint.library_prefixes]` or
  `LintConfig.library_prefixes`. A map passed here replaces the built-in one.
  """

  def __init__(
    self,
    library_prefixes: Optional[Dict[str, str]] = None,
    complexity_threshold: int = 50,
  ) -> None:
    """
    Args:
        library_prefixes (Optional[Dict[str, str]]): Prefix map, defaults to the stdfaust environments.
        complexity_threshold (int): Token count above which an expression is complex.
    """
    self.library_prefixes = dict(library_prefixes) if library_prefixes is not None else dict(DEFAULT_LIBRARY_PREFIXES)
    self.complexity_threshold = complexity_threshold

  def lint(self, structure: StructuralAnalysis) -> List[Diagnostic]:
    """
    Evaluates every rule.

    Args:
        structure (StructuralAnalysis): Output of the structural pass.

    Returns:
        List[Diagnostic]: Lint diagnostics, grouped by rule in rule order.
    """
    ctx = LintContext(
      program=structure.program,
      cleaned=structure.cleaned,
      library_prefixes=self.library_prefixes,
      complexity_threshold=self.complexity_threshold,
    )
    diagnostics: List[Diagnostic] = []
    for _, rule in LINT_RULES:
      diagnostics.extend(rule(ctx))
    return diagnostics

"""
Built-in Fix Rules.

Importing this module registers every rule. Priorities fix the order in which
the orchestrator considers them.
"""

from typing import Dict, List

from faust_lint.analysis.linter import find_slider_calls
from faust_lint.analysis.pipeline import SourceAnalysis
from faust_lint.analysis.tokens import KEYWORDS, PRIMITIVES, TokenKind
from faust_lint.enums import SafetyTier
from faust_lint.errors import FixApplicationError
from faust_lint.fixes.base import FixOutcome, FixRule, TextEdit, apply_edits, register_fix_rule
from faust_lint.fixes.policies import select_process_target


@register_fix_rule("add-missing-import")
class AddMissingImport(FixRule):
  """
  Inserts `import("<lib>");` for every library used through an environment
  prefix but never imported. The import goes before the first token, so
  leading comments stay on top.
  """

  description = "Add missing library imports"
  tier = SafetyTier.SAFE
  priority = 10

  def applies(self, source: str, analysis: SourceAnalysis) -> bool:
    return analysis.has("missing-import")

  def apply(self, source: str, analysis: SourceAnalysis) -> FixOutcome:
    libraries: List[str] = []
    for diag in analysis.of("missing-import"):
      if diag.subject and diag.subject not in libraries:
        libraries.append(diag.subject)
    if not libraries:
      raise FixApplicationError("missing-import diagnostics carry no library name")

    tokens = analysis.program.tokens
    offset = tokens[0].offset if tokens else 0
    block = "".join(f'import("{lib}");\n' for lib in libraries) + "\n"

    return FixOutcome(
      ok=True,
      new_source=apply_edits(source, [(offset, offset, block)]),
      summary=f"Added {len(libraries)} import(s)",
      changes=[f'import("{lib}");' for lib in libraries],
    )


@register_fix_rule("clamp-slider-default")
class ClampSliderDefault(FixRule):
  """
  Moves an out-of-range slider default onto the nearest bound, copying the
  bound literal verbatim. Inverted ranges are left alone.
  """

  description = "Clamp slider defaults into their range"
  tier = SafetyTier.SAFE
  priority = 20

  def applies(self, source: str, analysis: SourceAnalysis) -> bool:
    return any(call.out_of_range for call in find_slider_calls(analysis.cleaned))

  def apply(self, source: str, analysis: SourceAnalysis) -> FixOutcome:
    edits: List[TextEdit] = []
    changes: List[str] = []
    for call in find_slider_calls(analysis.cleaned):
      replacement = call.clamped_text()
      if replacement is None:
        continue
      start, end = call.init_span
      edits.append((start, end, replacement))
      changes.append(f'line {call.line}: {call.kind} "{call.label}" default {source[start:end]} -> {replacement}')

    return FixOutcome(
      ok=bool(edits),
      new_source=apply_edits(source, edits),
      summary=f"Clamped {len(edits)} slider default(s)",
      changes=changes,
    )


@register_fix_rule("add-missing-semicolon")
class AddMissingSemicolon(FixRule):
  """
  Appends `;` to each line flagged as an unterminated statement, before any
  trailing comment.
  """

  description = "Terminate statements missing ';'"
  tier = SafetyTier.MODERATE
  priority = 30

  def applies(self, source: str, analysis: SourceAnalysis) -> bool:
    return analysis.has("missing-semicolon")

  def apply(self, source: str, analysis: SourceAnalysis) -> FixOutcome:
    lines = sorted({d.line for d in analysis.of("missing-semicolon")})
    edits: List[TextEdit] = []
    for line in lines:
      offset = analysis.cleaned.line_end_offset(line)
      edits.append((offset, offset, ";"))

    return FixOutcome(
      ok=bool(edits),
      new_source=apply_edits(source, edits),
      summary=f"Added ';' on {len(edits)} line(s)",
      changes=[f"line {line}" for line in lines],
    )


@register_fix_rule("add-missing-process")
class AddMissingProcess(FixRule):
  """
  Appends `process = <name>;`, choosing `<name>` with the configured
  process selection policy.
  """

  description = "Bind process to an existing definition"
  tier = SafetyTier.MODERATE
  priority = 40

  def applies(self, source: str, analysis: SourceAnalysis) -> bool:
    return analysis.program.process is None and bool(analysis.program.definitions)

  def apply(self, source: str, analysis: SourceAnalysis) -> FixOutcome:
    name = select_process_target(analysis.program, self.config.process_policy)
    if name is None:
      raise FixApplicationError("No definition available to bind process to")

    separator = "" if not source or source.endswith("\n") else "\n"
    statement = f"process = {name};"
    return FixOutcome(
      ok=True,
      new_source=f"{source}{separator}\n{statement}\n",
      summary=f"Added {statement}",
      changes=[statement],
    )


@register_fix_rule("rename-uppercase-identifiers")
class RenameUpperCaseIdentifiers(FixRule):
  """
  Renames definitions containing uppercase letters to lowercase.

  The rename is token-level: only whole identifiers change, never text in
  comments or strings, and member names after `.` are left alone. Names whose
  lowercase form is a keyword, a built-in primitive (`sin`, `button`, ...)
  or already in use are skipped.
  """

  description = "Lowercase definition names"
  tier = SafetyTier.RISKY
  priority = 50

  def _plan(self, analysis: SourceAnalysis) -> Dict[str, str]:
    tokens = analysis.program.tokens
    in_use = {t.text for t in tokens if t.kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD)}
    plan: Dict[str, str] = {}
    for definition in analysis.program.definitions:
      name = definition.name
      lower = name.lower()
      if name == lower or name in plan:
        continue
      if lower in KEYWORDS or lower in PRIMITIVES or lower in in_use or lower in plan.values():
        continue
      plan[name] = lower
    return plan

  def applies(self, source: str, analysis: SourceAnalysis) -> bool:
    return bool(self._plan(analysis))

  def apply(self, source: str, analysis: SourceAnalysis) -> FixOutcome:
    plan = self._plan(analysis)
    tokens = analysis.program.tokens
    edits: List[TextEdit] = []
    for idx, tok in enumerate(tokens):
      if tok.kind != TokenKind.IDENTIFIER or tok.text not in plan:
        continue
      if idx > 0 and tokens[idx - 1].is_op("."):
        continue
      edits.append((tok.offset, tok.end, plan[tok.text]))

    return FixOutcome(
      ok=bool(edits),
      new_source=apply_edits(source, edits),
      summary=f"Renamed {len(plan)} identifier(s)",
      changes=[f"{old} -> {new}" for old, new in plan.items()],
    )

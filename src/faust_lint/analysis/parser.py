"""
Faust Structural Analyzer.

Parses the token stream from the `FaustLexer` into the shallow `Program` model
without a full expression grammar. A single left-to-right pass recognises the
top-level statement forms:

1.  ``import("lib");``
2.  ``declare key "value";``
3.  ``name [(params)] = expr;``
4.  ``process = expr;``

Expressions are kept as opaque token spans delimited with a bracket stack. The
span primitive stops at the first `;` or `,` at bracket depth zero; top-level
statements treat a depth-zero `,` as parallel composition and keep going, so a
statement span runs up to its terminating `;`.

Every problem becomes a structural `Diagnostic`. The parser never raises:
after a missing `=`, `;` or bracket it resynchronizes at the next plausible
statement start and carries on, so a partial `Program` is always returned.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from faust_lint.analysis.metrics import compute_metrics
from faust_lint.analysis.nodes import Declaration, Definition, Import, ProcessBinding, Program, Span
from faust_lint.analysis.tokens import (
  CLOSE_BRACKETS,
  OPEN_BRACKETS,
  CleanedSource,
  FaustLexer,
  LexicalIssue,
  Token,
  TokenKind,
)
from faust_lint.enums import DiagnosticOrigin, Severity
from faust_lint.models import Diagnostic, Metrics

# Reasons a span scan stops.
_STOP_SEMICOLON = "semicolon"
_STOP_COMMA = "comma"
_STOP_BOUNDARY = "boundary"
_STOP_EOF = "eof"

_STATEMENT_KEYWORDS = ("import", "declare", "process")


@dataclass
class StructuralAnalysis:
  """
  Output of the structural pass over one source.

  Attributes:
      source (str): The analysed text.
      program (Program): The shallow AST (owns the token stream).
      cleaned (CleanedSource): Comment/string-blanked view of the source.
      diagnostics (List[Diagnostic]): Structural diagnostics in encounter order.
      metrics (Metrics): Size and token statistics.
      lexical_issues (List[LexicalIssue]): Raw issues reported by the lexer.
  """

  source: str
  program: Program
  cleaned: CleanedSource
  diagnostics: List[Diagnostic] = field(default_factory=list)
  metrics: Metrics = field(default_factory=Metrics)
  lexical_issues: List[LexicalIssue] = field(default_factory=list)

  @property
  def tokens(self) -> List[Token]:
    """The token stream of the analysis."""
    return self.program.tokens


class StructuralAnalyzer:
  """
  Facade running the lexer and the statement parser over a source string.

  Instances hold no per-call state, so one analyzer may be shared across threads.
  """

  def analyze(self, source: str) -> StructuralAnalysis:
    """
    Analyzes the structure of a Faust source.

    Args:
        source (str): Raw Faust code (not required to be well-formed).

    Returns:
        StructuralAnalysis: Tokens, AST, cleaned view, diagnostics and metrics.
    """
    lexer = FaustLexer()
    tokens = lexer.tokenize(source)
    cleaned = CleanedSource.from_spans(source, lexer.masked_spans)

    diagnostics = [_lexical_diagnostic(issue) for issue in lexer.issues]

    parser = StatementParser(tokens)
    program = parser.parse()
    diagnostics.extend(parser.diagnostics)

    return StructuralAnalysis(
      source=source,
      program=program,
      cleaned=cleaned,
      diagnostics=diagnostics,
      metrics=compute_metrics(source, program),
      lexical_issues=list(lexer.issues),
    )


def _lexical_diagnostic(issue: LexicalIssue) -> Diagnostic:
  what = "string literal" if issue.kind == "unterminated-string" else "block comment"
  return Diagnostic(
    severity=Severity.ERROR,
    origin=DiagnosticOrigin.STRUCTURE,
    category=issue.kind,
    message=f"Unterminated {what} starting at line {issue.line}",
    line=issue.line,
    column=issue.column,
  )


class StatementParser:
  """
  Recovering statement-level parser for Faust token streams.
  """

  def __init__(self, tokens: List[Token]) -> None:
    """
    Initialize the parser.

    Args:
        tokens (List[Token]): Token stream produced by the lexer.
    """
    self.tokens = tokens
    self.pos = 0
    self.diagnostics: List[Diagnostic] = []
    self.program = Program(tokens=tokens)
    self._simple_definitions: Dict[str, int] = {}

  def parse(self) -> Program:
    """
    Parses the entire token stream.

    Returns:
        Program: The (possibly partial) structural model.
    """
    while not self._is_eof():
      token = self._peek()
      if token.is_keyword("import"):
        self._parse_import()
      elif token.is_keyword("declare"):
        self._parse_declaration()
      elif token.is_keyword("process"):
        self._parse_process()
      elif token.kind == TokenKind.IDENTIFIER:
        self._parse_definition()
      elif token.is_op(";"):
        self.pos += 1
      else:
        if token.kind == TokenKind.OPERATOR and token.text in CLOSE_BRACKETS:
          self._error("unmatched-bracket", f"Unmatched closing '{token.text}'", token)
        else:
          self._error("unexpected-token", f"Unexpected token '{token.text}' at top level", token)
        self._synchronize(consume_current=True)

    if self.program.process is None:
      self.diagnostics.append(
        Diagnostic(
          severity=Severity.WARNING,
          origin=DiagnosticOrigin.STRUCTURE,
          category="missing-process",
          message='No "process" declaration found',
          line=self.tokens[-1].line if self.tokens else 1,
          suggestion="Add: process = <definition>;",
        )
      )
    return self.program

  # --- Cursor helpers ---

  def _peek(self, offset: int = 0) -> Optional[Token]:
    """Looks ahead at the pending token."""
    if self.pos + offset < len(self.tokens):
      return self.tokens[self.pos + offset]
    return None

  def _is_eof(self) -> bool:
    return self.pos >= len(self.tokens)

  def _starts_line(self, idx: int) -> bool:
    """True if the token at `idx` is the first token on its line."""
    return idx == 0 or self.tokens[idx - 1].line < self.tokens[idx].line

  def _is_statement_start(self, idx: int) -> bool:
    """
    Heuristic for a plausible statement start: a line-initial statement keyword,
    or a line-initial identifier followed by `=` or `(`.
    """
    if idx >= len(self.tokens) or not self._starts_line(idx):
      return False
    token = self.tokens[idx]
    if token.is_keyword(*_STATEMENT_KEYWORDS):
      return True
    if token.kind == TokenKind.IDENTIFIER and idx + 1 < len(self.tokens):
      return self.tokens[idx + 1].is_op("=", "(")
    return False

  def _error(
    self,
    category: str,
    message: str,
    token: Optional[Token] = None,
    line: Optional[int] = None,
    severity: Severity = Severity.ERROR,
    suggestion: Optional[str] = None,
    subject: Optional[str] = None,
  ) -> None:
    if line is None:
      line = token.line if token else (self.tokens[-1].line if self.tokens else 1)
    self.diagnostics.append(
      Diagnostic(
        severity=severity,
        origin=DiagnosticOrigin.STRUCTURE,
        category=category,
        message=message,
        line=line,
        column=token.column if token else None,
        suggestion=suggestion,
        subject=subject,
      )
    )

  def _synchronize(self, consume_current: bool) -> None:
    """
    Skips forward to the next plausible statement start.

    Stops after a depth-zero `;` (consumed) or before a line-initial statement
    start. Always makes progress when `consume_current` is set.

    Args:
        consume_current (bool): Skip the current token unconditionally.
    """
    depth = 0
    first = consume_current
    while not self._is_eof():
      token = self._peek()
      if not first and depth == 0 and self._is_statement_start(self.pos):
        return
      first = False
      self.pos += 1
      if token.kind != TokenKind.OPERATOR:
        continue
      if token.text in OPEN_BRACKETS:
        depth += 1
      elif token.text in CLOSE_BRACKETS and depth > 0:
        depth -= 1
      elif token.text == ";" and depth == 0:
        return

  def _expect_terminator(self, what: str, line: int, subject: Optional[str] = None) -> bool:
    """
    Consumes the `;` ending a statement, reporting it if missing.

    Args:
        what (str): Description of the statement for the message.
        line (int): Line to attach the diagnostic to.
        subject (Optional[str]): Name of the defined symbol, if any.

    Returns:
        bool: True if the terminator was present.
    """
    token = self._peek()
    if token is not None and token.is_op(";"):
      self.pos += 1
      return True
    self._error(
      "expected-semicolon",
      f"Expected ';' after {what}",
      line=line,
      suggestion="Terminate the statement with ';'",
      subject=subject,
    )
    if token is not None and not self._is_statement_start(self.pos):
      self._synchronize(consume_current=False)
    return False

  def _end_line(self, span: Span, fallback: int) -> int:
    if span[1] > span[0]:
      return self.tokens[span[1] - 1].line
    return fallback

  # --- Statements ---

  def _parse_import(self) -> None:
    """Parses `import("lib");`."""
    keyword = self.tokens[self.pos]
    self.pos += 1

    opener = self._peek()
    if opener is None or not opener.is_op("("):
      self._error("import-syntax", 'Expected "(" after import', keyword)
      self._synchronize(consume_current=False)
      return
    self.pos += 1

    lib_token = self._peek()
    if lib_token is not None and lib_token.kind == TokenKind.STRING:
      library = lib_token.text[1:-1] if len(lib_token.text) > 1 and lib_token.text.endswith('"') else lib_token.text[1:]
      self.program.imports.append(Import(library=library, line=keyword.line))
      self.pos += 1
    else:
      self._error("import-syntax", "Expected library name as string", keyword)
      self._synchronize(consume_current=False)
      return

    closer = self._peek()
    if closer is not None and closer.is_op(")"):
      self.pos += 1
    else:
      self._error("unclosed-bracket", f"Unclosed '(' opened on line {opener.line}", opener)
      if closer is not None and not closer.is_op(";") and not self._is_statement_start(self.pos):
        self._synchronize(consume_current=False)
        return

    self._expect_terminator("import statement", keyword.line)

  def _parse_declaration(self) -> None:
    """Parses `declare key "value";`."""
    keyword = self.tokens[self.pos]
    self.pos += 1

    key_token = self._peek()
    if key_token is None or key_token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
      self._error("declare-syntax", "Expected metadata key after declare", keyword)
      self._synchronize(consume_current=False)
      return

    self._parse_expression()
    self.program.declarations.append(Declaration(key=key_token.text, line=keyword.line))
    self._expect_terminator("declare statement", keyword.line)

  def _parse_process(self) -> None:
    """Parses `process = expr;`."""
    keyword = self.tokens[self.pos]
    self.pos += 1

    equals = self._peek()
    if equals is None or not equals.is_op("="):
      self._error("missing-equals", 'Expected "=" after process', keyword)
      self._synchronize(consume_current=False)
      return
    self.pos += 1

    span = self._parse_expression()
    terminated = self._expect_terminator("process expression", keyword.line, subject="process")
    binding = ProcessBinding(
      line=keyword.line,
      span=span,
      end_line=self._end_line(span, keyword.line),
      terminated=terminated,
    )

    if self.program.process is None:
      self.program.process = binding
    else:
      self._error(
        "duplicate-process",
        f'"process" already defined on line {self.program.process.line}',
        keyword,
        subject="process",
      )

  def _parse_definition(self) -> None:
    """Parses `name [(params)] = expr;`."""
    name_token = self.tokens[self.pos]
    name = name_token.text
    self.pos += 1

    params: List[str] = []
    nxt = self._peek()
    if nxt is not None and nxt.is_op("("):
      parsed = self._parse_parameters()
      if parsed is None:
        nxt = self._peek()
        if nxt is None or not nxt.is_op("="):
          self._synchronize(consume_current=False)
          return
      else:
        params = parsed

    equals = self._peek()
    if equals is None or not equals.is_op("="):
      self._error(
        "missing-equals",
        f'Expected "=" in definition of "{name}"',
        name_token,
        subject=name,
      )
      self._synchronize(consume_current=False)
      return
    self.pos += 1

    span = self._parse_expression()
    terminated = self._expect_terminator(f'definition of "{name}"', name_token.line, subject=name)

    if not params:
      if name in self._simple_definitions:
        self._error(
          "duplicate-definition",
          f'Symbol "{name}" defined multiple times (first on line {self._simple_definitions[name]})',
          name_token,
          severity=Severity.WARNING,
          subject=name,
        )
      else:
        self._simple_definitions[name] = name_token.line

    self.program.definitions.append(
      Definition(
        name=name,
        parameters=params,
        line=name_token.line,
        span=span,
        end_line=self._end_line(span, name_token.line),
        terminated=terminated,
      )
    )

  def _parse_parameters(self) -> Optional[List[str]]:
    """
    Parses a parenthesised formal parameter list.

    Pattern-matching clauses may use literals (`fact(0) = 1;`); each
    comma-separated group is recorded by its joined token text.

    Returns:
        Optional[List[str]]: Parameters, or None if the list is unclosed.
    """
    opener = self.tokens[self.pos]
    self.pos += 1
    depth = 1
    groups: List[List[str]] = [[]]

    while not self._is_eof():
      token = self._peek()
      if token.kind == TokenKind.OPERATOR:
        if token.text in OPEN_BRACKETS:
          depth += 1
        elif token.text in CLOSE_BRACKETS:
          depth -= 1
          if depth == 0:
            self.pos += 1
            return ["".join(g) for g in groups if g]
        elif token.text == "," and depth == 1:
          self.pos += 1
          groups.append([])
          continue
        elif token.text in (";", "=") and depth == 1:
          break
      groups[-1].append(token.text)
      self.pos += 1

    self._error("unclosed-bracket", f"Unclosed '(' opened on line {opener.line}", opener)
    return None

  # --- Expressions ---

  def _parse_expression(self) -> Span:
    """
    Scans a statement expression, joining depth-zero `,` separated spans.

    Returns:
        Span: Token range of the whole expression (terminator excluded).
    """
    start = self.pos
    while True:
      stop = self._scan_span(start)
      if stop == _STOP_COMMA:
        self.pos += 1
        continue
      break
    return start, self.pos

  def _scan_span(self, expr_start: int) -> str:
    """
    Advances over one span, stopping at a depth-zero `;` or `,`.

    Recovery rules:
    - `;` inside `(` or `[`: those brackets are reported unclosed and the `;`
      ends the statement.
    - A depth-zero `=` preceded by a line-initial definition head, or a
      line-initial statement keyword, means the previous statement lost its
      `;`: stop before the head (`boundary`).

    Args:
        expr_start (int): Index of the first token of the whole expression.

    Returns:
        str: Why the scan stopped.
    """
    stack: List[Tuple[int, Token]] = []

    while not self._is_eof():
      token = self._peek()
      in_braces = any(t.text == "{" for _, t in stack)

      if token.kind == TokenKind.OPERATOR:
        if token.text in OPEN_BRACKETS:
          stack.append((self.pos, token))
        elif token.text in CLOSE_BRACKETS:
          if not stack:
            self._error("unmatched-bracket", f"Unmatched closing '{token.text}'", token)
          elif stack[-1][1].text == CLOSE_BRACKETS[token.text]:
            stack.pop()
          else:
            _, opened = stack.pop()
            self._error(
              "mismatched-bracket",
              f"Closing '{token.text}' does not match '{opened.text}' opened on line {opened.line}",
              token,
            )
        elif token.text == ";":
          if not stack:
            return _STOP_SEMICOLON
          if stack[-1][1].text != "{":
            self._report_unclosed(stack, keep_braces=True)
            if not stack:
              return _STOP_SEMICOLON
        elif token.text == "," and not stack:
          return _STOP_COMMA
        elif token.text == "=" and not in_braces:
          head = self._definition_head_before(self.pos)
          if head is not None and head >= expr_start:
            self._report_unclosed([entry for entry in stack if entry[0] < head], keep_braces=False)
            self.pos = head
            return _STOP_BOUNDARY

      elif token.is_keyword(*_STATEMENT_KEYWORDS) and not in_braces and self._starts_line(self.pos):
        self._report_unclosed(stack, keep_braces=False)
        return _STOP_BOUNDARY

      self.pos += 1

    self._report_unclosed(stack, keep_braces=False)
    return _STOP_EOF

  def _definition_head_before(self, eq_idx: int) -> Optional[int]:
    """
    Finds the name token of a definition whose `=` sits at `eq_idx`.

    Handles `name =` and `name(params) =`; the name must start its line.

    Args:
        eq_idx (int): Index of the `=` token.

    Returns:
        Optional[int]: Index of the name token, or None.
    """
    j = eq_idx - 1
    if j >= 0 and self.tokens[j].is_op(")"):
      depth = 0
      while j >= 0:
        tok = self.tokens[j]
        if tok.is_op(")"):
          depth += 1
        elif tok.is_op("("):
          depth -= 1
          if depth == 0:
            break
        j -= 1
      j -= 1
    if j < 0:
      return None
    head = self.tokens[j]
    if head.kind != TokenKind.IDENTIFIER and not head.is_keyword("process"):
      return None
    if not self._starts_line(j):
      return None
    return j

  def _report_unclosed(self, stack: List[Tuple[int, Token]], keep_braces: bool) -> None:
    """
    Pops open brackets off `stack` and reports each as unclosed.

    Args:
        stack (List[Tuple[int, Token]]): Open brackets (mutated in place).
        keep_braces (bool): Stop popping at the innermost `{`.
    """
    popped: List[Token] = []
    while stack:
      if keep_braces and stack[-1][1].text == "{":
        break
      popped.append(stack.pop()[1])
    for token in reversed(popped):
      self._error("unclosed-bracket", f"Unclosed '{token.text}' opened on line {token.line}", token)

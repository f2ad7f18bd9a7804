"""
Faust Tokenizer Definition.

Provides a hand-driven Lexer (`FaustLexer`) that decomposes raw Faust source
text into an ordered stream of typed `Token` objects. Simple lexemes (numbers,
identifiers, operators) are matched with a priority-ordered regex table; the
constructs that need state (nested block comments and escape-aware string
literals) are scanned by hand.

The lexer is total: any character sequence produces tokens, and unrecognised
characters become `UNKNOWN` tokens instead of raising. Unterminated strings and
comments are recorded as `LexicalIssue`s for the structural analyzer to report.

The same scan also records which character ranges are comment text or string
bodies. `CleanedSource` uses those ranges to blank them out while preserving
every offset, line and column, so raw-text rules never match inside comments.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern, Tuple


class TokenKind(str, Enum):
  """Enumeration of Faust token kinds."""

  IDENTIFIER = "identifier"  # gain, os, lowpass
  KEYWORD = "keyword"  # process, import, with
  NUMBER = "number"  # 440, 0.5, 1e-3
  STRING = "string"  # "stdfaust.lib"
  OPERATOR = "operator"  # <: :> , ; ( ) ~
  UNKNOWN = "unknown"  # anything else


KEYWORDS = frozenset(
  {
    "process",
    "import",
    "declare",
    "with",
    "where",
    "letrec",
    "environment",
    "component",
    "library",
    "case",
    "seq",
    "par",
    "sum",
    "prod",
  }
)

# Built-in primitives. They lex as identifiers but cannot be redefined.
PRIMITIVES = frozenset(
  {
    # math
    "sin",
    "cos",
    "tan",
    "asin",
    "acos",
    "atan",
    "atan2",
    "exp",
    "log",
    "log10",
    "pow",
    "sqrt",
    "abs",
    "min",
    "max",
    "fmod",
    "remainder",
    "floor",
    "ceil",
    "rint",
    "round",
    # signal
    "mem",
    "prefix",
    "int",
    "float",
    "rdtable",
    "rwtable",
    "select2",
    "select3",
    "attach",
    "route",
    "enable",
    "control",
    "waveform",
    "soundfile",
    "lowest",
    "highest",
    "inputs",
    "outputs",
    "ondemand",
    # ui
    "button",
    "checkbox",
    "hslider",
    "vslider",
    "nentry",
    "hbargraph",
    "vbargraph",
    "hgroup",
    "vgroup",
    "tgroup",
    # foreign
    "ffunction",
    "fconstant",
    "fvariable",
  }
)

# Longest first so that `<:` wins over `<`.
MULTI_CHAR_OPERATORS: Tuple[str, ...] = ("<:", ":>", "::", "==", "!=", "<=", ">=", "&&", "||", "<<", ">>")
SINGLE_CHAR_OPERATORS = "()[]{}:,;<>=-+*/%@~!&|.?'^\\"

OPEN_BRACKETS = {"(": ")", "[": "]", "{": "}"}
CLOSE_BRACKETS = {")": "(", "]": "[", "}": "{"}


@dataclass
class Token:
  """
  Represents a lexical unit.

  Attributes:
      kind (TokenKind): The type of token.
      text (str): The raw source text of the token.
      line (int): Line number in source (1-based).
      column (int): Column number in source (1-based).
      offset (int): Character offset of the first character (0-based).
  """

  kind: TokenKind
  text: str
  line: int
  column: int
  offset: int = 0

  @property
  def end(self) -> int:
    """Offset one past the last character of the token."""
    return self.offset + len(self.text)

  def is_op(self, *values: str) -> bool:
    """
    Checks whether this token is one of the given operators.

    Args:
        *values: Operator spellings to compare against.

    Returns:
        bool: True if the token is an operator with matching text.
    """
    return self.kind == TokenKind.OPERATOR and self.text in values

  def is_keyword(self, *values: str) -> bool:
    """Checks whether this token is one of the given keywords."""
    return self.kind == TokenKind.KEYWORD and self.text in values


@dataclass
class LexicalIssue:
  """
  A recoverable problem found while scanning.

  Attributes:
      kind (str): `unterminated-string` or `unterminated-comment`.
      line (int): Line where the construct starts.
      column (int): Column where the construct starts.
  """

  kind: str
  line: int
  column: int


@dataclass(frozen=True)
class CleanedSource:
  """
  Source text with comments and string-literal bodies blanked out.

  Blanked characters are replaced by spaces, newlines are kept, and string
  quotes stay in place. Length is identical to the original, so any offset
  found in `text` is valid in `original`.

  Attributes:
      original (str): The untouched source.
      text (str): The cleaned view.
  """

  original: str
  text: str

  @classmethod
  def from_spans(cls, original: str, spans: List[Tuple[int, int]]) -> "CleanedSource":
    """
    Builds the cleaned view by blanking the given half-open character ranges.

    Args:
        original (str): The raw source.
        spans (List[Tuple[int, int]]): Ranges to blank, in any order.

    Returns:
        CleanedSource: The cleaned view.
    """
    chars = list(original)
    for start, end in spans:
      for i in range(max(start, 0), min(end, len(chars))):
        if chars[i] != "\n":
          chars[i] = " "
    return cls(original=original, text="".join(chars))

  def line_of(self, offset: int) -> int:
    """
    Converts a character offset to a 1-based line number.

    Args:
        offset (int): Character offset.

    Returns:
        int: The line containing the offset.
    """
    return self.text.count("\n", 0, offset) + 1

  def lines(self) -> List[str]:
    """Returns the cleaned text split into lines (without terminators)."""
    return self.text.split("\n")

  def line_end_offset(self, line: int) -> int:
    """
    Finds the offset just after the last code character of a line.

    Trailing whitespace and blanked comments are ignored, so inserting at the
    returned offset places text before any trailing comment.

    Args:
        line (int): 1-based line number.

    Returns:
        int: Offset suitable for appending code to the line.
    """
    start = 0
    for _ in range(line - 1):
      nxt = self.text.find("\n", start)
      if nxt == -1:
        return len(self.text)
      start = nxt + 1
    stop = self.text.find("\n", start)
    if stop == -1:
      stop = len(self.text)
    content = self.text[start:stop].rstrip()
    return start + len(content)


class FaustLexer:
  """
  Tokenizer for Faust DSP source code.
  """

  # Compiled Regex Patterns (Order determines priority)
  PATTERNS: List[Tuple[TokenKind, str]] = [
    # 1. Numbers: 440, 0.5, .5, 1e-3, 2.
    (TokenKind.NUMBER, r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"),
    # 2. Identifiers (keywords are split off afterwards)
    (TokenKind.IDENTIFIER, r"[A-Za-z_][A-Za-z0-9_]*"),
    # 3. Multi-character operators, greedy
    (TokenKind.OPERATOR, "|".join(re.escape(op) for op in MULTI_CHAR_OPERATORS)),
  ]

  # U+FEFF is the byte-order mark some editors put at the start of a file.
  _WHITESPACE: Pattern[str] = re.compile(r"[\s\ufeff]+")

  def __init__(self) -> None:
    """Initializes the lexer with compiled patterns."""
    self.regex_pairs = [(kind, re.compile(pattern)) for kind, pattern in self.PATTERNS]
    self.issues: List[LexicalIssue] = []
    self.masked_spans: List[Tuple[int, int]] = []
    self._line = 1
    self._line_start = 0

  def tokenize(self, text: str) -> List[Token]:
    """
    Tokenizes the input string.

    Args:
        text (str): Raw Faust source code.

    Returns:
        List[Token]: Tokens in source order. Comments and whitespace are
        consumed but not emitted.
    """
    self.issues = []
    self.masked_spans = []
    self._line = 1
    self._line_start = 0

    tokens: List[Token] = []
    pos = 0
    length = len(text)

    while pos < length:
      match_ws = self._WHITESPACE.match(text, pos)
      if match_ws:
        self._advance_lines(text, pos, match_ws.end())
        pos = match_ws.end()
        continue

      if text.startswith("//", pos):
        end = text.find("\n", pos)
        end = length if end == -1 else end
        self.masked_spans.append((pos, end))
        pos = end
        continue

      if text.startswith("/*", pos):
        pos = self._scan_block_comment(text, pos)
        continue

      if text[pos] == '"':
        token, pos = self._scan_string(text, pos)
        tokens.append(token)
        continue

      token = self._match_table(text, pos)
      if token is None:
        char = text[pos]
        kind = TokenKind.OPERATOR if char in SINGLE_CHAR_OPERATORS else TokenKind.UNKNOWN
        token = Token(kind, char, self._line, self._column(pos), pos)

      tokens.append(token)
      pos = token.end

    return tokens

  def clean(self, text: str) -> CleanedSource:
    """
    Tokenizes `text` and returns its cleaned view.

    Args:
        text (str): Raw Faust source code.

    Returns:
        CleanedSource: Comments and string bodies blanked.
    """
    self.tokenize(text)
    return CleanedSource.from_spans(text, self.masked_spans)

  def _column(self, pos: int) -> int:
    return pos - self._line_start + 1

  def _advance_lines(self, text: str, start: int, end: int) -> None:
    """Updates line tracking for the consumed range [start, end)."""
    newlines = text.count("\n", start, end)
    if newlines:
      self._line += newlines
      self._line_start = text.rfind("\n", start, end) + 1

  def _match_table(self, text: str, pos: int) -> Optional[Token]:
    for kind, regex in self.regex_pairs:
      match = regex.match(text, pos)
      if match:
        value = match.group(0)
        if kind == TokenKind.IDENTIFIER and value in KEYWORDS:
          kind = TokenKind.KEYWORD
        return Token(kind, value, self._line, self._column(pos), pos)
    return None

  def _scan_block_comment(self, text: str, pos: int) -> int:
    """
    Consumes a (possibly nested) block comment starting at `pos`.

    Returns:
        int: Offset just after the comment, or end of input if unterminated.
    """
    start_line, start_col = self._line, self._column(pos)
    depth = 0
    i = pos
    length = len(text)
    while i < length:
      if text.startswith("/*", i):
        depth += 1
        i += 2
      elif text.startswith("*/", i):
        depth -= 1
        i += 2
        if depth == 0:
          break
      else:
        i += 1

    if depth > 0:
      self.issues.append(LexicalIssue("unterminated-comment", start_line, start_col))
      i = length

    self.masked_spans.append((pos, i))
    self._advance_lines(text, pos, i)
    return i

  def _scan_string(self, text: str, pos: int) -> Tuple[Token, int]:
    """
    Consumes an escape-aware string literal starting at the opening quote.

    Returns:
        Tuple[Token, int]: The STRING token and the offset after it.
    """
    line, col = self._line, self._column(pos)
    length = len(text)
    i = pos + 1
    terminated = False
    while i < length:
      char = text[i]
      if char == "\\":
        i += 2
        continue
      if char == '"':
        i += 1
        terminated = True
        break
      i += 1
    i = min(i, length)

    if not terminated:
      self.issues.append(LexicalIssue("unterminated-string", line, col))

    body_end = i - 1 if terminated else i
    self.masked_spans.append((pos + 1, body_end))
    self._advance_lines(text, pos, i)
    return Token(TokenKind.STRING, text[pos:i], line, col, pos), i


def tokenize(text: str) -> List[Token]:
  """
  Convenience wrapper returning the token stream for `text`.

  Args:
      text (str): Raw Faust source code.

  Returns:
      List[Token]: The token stream.
  """
  return FaustLexer().tokenize(text)


def clean_source(text: str) -> CleanedSource:
  """
  Convenience wrapper returning the cleaned view of `text`.

  Args:
      text (str): Raw Faust source code.

  Returns:
      CleanedSource: Comments and string bodies blanked.
  """
  return FaustLexer().clean(text)

"""
Faust AST Nodes.

Defines the shallow structural model produced by the `StructuralAnalyzer`.
Expression bodies are not parsed into trees; they are kept as opaque,
half-open token spans `[start, end)` into the token stream of the analysis.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from faust_lint.analysis.tokens import Token, TokenKind

Span = Tuple[int, int]


@dataclass
class Import:
  """
  Represents an `import("library");` statement.

  Attributes:
      library (str): The library file name without quotes (e.g. `stdfaust.lib`).
      line (int): Line of the `import` keyword.
  """

  library: str
  line: int


@dataclass
class Declaration:
  """
  Represents a `declare key "value";` metadata statement.

  Attributes:
      key (str): The metadata key (e.g. `name`, `author`).
      line (int): Line of the `declare` keyword.
  """

  key: str
  line: int


@dataclass
class Definition:
  """
  Represents a named definition `name [(params)] = expr;`.

  Attributes:
      name (str): The defined symbol.
      parameters (List[str]): Formal parameter names, in order.
      line (int): Line of the name token.
      span (Span): Token index range of the expression.
      end_line (int): Line of the last token of the statement.
      terminated (bool): False if the statement lost its `;`.
  """

  name: str
  parameters: List[str] = field(default_factory=list)
  line: int = 0
  span: Span = (0, 0)
  end_line: int = 0
  terminated: bool = True

  @property
  def span_length(self) -> int:
    """Number of tokens in the expression."""
    return self.span[1] - self.span[0]


@dataclass
class ProcessBinding:
  """
  Represents the distinguished `process = expr;` entry point.

  Attributes:
      line (int): Line of the `process` keyword.
      span (Span): Token index range of the expression.
      end_line (int): Line of the last token of the statement.
      terminated (bool): False if the statement lost its `;`.
  """

  line: int
  span: Span = (0, 0)
  end_line: int = 0
  terminated: bool = True


@dataclass
class Program:
  """
  Root of the structural model.

  Attributes:
      tokens (List[Token]): The token stream every span indexes into.
      imports (List[Import]): Import statements in source order.
      declarations (List[Declaration]): Metadata declarations in source order.
      definitions (List[Definition]): Named definitions in source order.
      process (Optional[ProcessBinding]): The first `process` binding, if any.
  """

  tokens: List[Token] = field(default_factory=list)
  imports: List[Import] = field(default_factory=list)
  declarations: List[Declaration] = field(default_factory=list)
  definitions: List[Definition] = field(default_factory=list)
  process: Optional[ProcessBinding] = None

  def span_tokens(self, span: Span) -> List[Token]:
    """
    Returns the tokens covered by a span.

    Args:
        span (Span): Half-open token index range.

    Returns:
        List[Token]: The covered tokens.
    """
    return self.tokens[span[0] : span[1]]

  def referenced_names(self, span: Span) -> List[str]:
    """
    Collects identifiers used as references inside a span.

    Member names after a `.` (e.g. `osc` in `os.osc`) are library members,
    not references to local definitions, and are skipped.

    Args:
        span (Span): Half-open token index range.

    Returns:
        List[str]: Referenced identifier names in order of appearance.
    """
    names: List[str] = []
    start, end = span
    for idx in range(start, min(end, len(self.tokens))):
      tok = self.tokens[idx]
      if tok.kind != TokenKind.IDENTIFIER:
        continue
      if idx > 0 and self.tokens[idx - 1].is_op("."):
        continue
      names.append(tok.text)
    return names

  @property
  def library_names(self) -> List[str]:
    """Names of all imported libraries."""
    return [imp.library for imp in self.imports]

  @property
  def definition_names(self) -> List[str]:
    """Names of all definitions, with duplicates, in source order."""
    return [d.name for d in self.definitions]

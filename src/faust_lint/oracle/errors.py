"""
Faust Compiler Output Parser.

Turns the free-form diagnostics printed by the `faust` compiler into
`CompilerMessage` records and assigns each one a category.
"""

import re
from typing import List, Optional, Pattern, Tuple

from pydantic import BaseModel, Field

# Tried in order on each stripped line; the first match wins.
# (severity, regex, has_location)
OUTPUT_PATTERNS: List[Tuple[str, Pattern[str], bool]] = [
  # ERROR : file.dsp : 12 : undefined symbol : foo
  ("error", re.compile(r"ERROR\s*:\s*([^:]+?)\s*:\s*(\d+)\s*:\s*(.+)", re.IGNORECASE), True),
  # file.dsp : 12 : ERROR : message   (faust >= 2.x)
  ("error", re.compile(r"([^:]+?)\s*:\s*(\d+)\s*:\s*ERROR\s*:\s*(.+)", re.IGNORECASE), True),
  # file.dsp:12: message
  ("error", re.compile(r"([^:\s][^:]*?)\s*:\s*(\d+)\s*:\s*(.+)"), True),
  ("error", re.compile(r"ERROR\s*:\s*(.+)", re.IGNORECASE), False),
  ("warning", re.compile(r"WARNING\s*:\s*(.+)", re.IGNORECASE), False),
]

# (category, all of these substrings must appear in the lowercased message)
CATEGORY_RULES: List[Tuple[str, Tuple[Tuple[str, ...], ...]]] = [
  ("syntax-missing-semicolon", (("expected", "';'"), ("expecting", "enddef"))),
  ("syntax-undefined-symbol", (("undefined symbol",), ("is undefined",))),
  ("syntax-unclosed-parenthesis", (("expected", "')'"), ("expecting", "rpar"))),
  ("syntax-missing-process", (("process", "not defined"),)),
  ("type-domain-violation-sqrt", (("domain", "sqrt"),)),
  ("type-domain-violation-log", (("domain", "log"),)),
  ("type-division-by-zero", (("division", "zero"),)),
  ("signal-causality-violation", (("causality",), ("zero-delay",), ("delay-free loop",))),
  ("signal-unbounded-recursion", (("recursive", "unbounded"),)),
  ("composition-io-mismatch", (("dimension",), ("mismatch",), ("incompatible",))),
  ("compilation-missing-architecture", (("architecture", "not found"),)),
  ("compilation-library-import-failed", (("import", "failed"), ("library", "not found"))),
]


class CompilerMessage(BaseModel):
  """
  One diagnostic line printed by the compiler.
  """

  severity: str = Field(..., description="error or warning.")
  message: str
  file: Optional[str] = None
  line: Optional[int] = None
  category: str = "unknown"
  raw: str = ""


class ContextLine(BaseModel):
  number: int
  content: str
  is_error: bool = False


def categorize_error(message: str) -> str:
  """
  Assigns a category to a compiler message.

  Args:
      message (str): The message text.

  Returns:
      str: A kebab-case category, `unknown` if nothing matches.
  """
  lowered = message.lower()
  for category, alternatives in CATEGORY_RULES:
    for required in alternatives:
      if all(part in lowered for part in required):
        return category
  return "unknown"


def parse_compiler_output(output: str) -> List[CompilerMessage]:
  """
  Extracts structured messages from raw compiler output.

  Args:
      output (str): Combined stdout/stderr of a compiler run.

  Returns:
      List[CompilerMessage]: Messages in output order. Lines matching no pattern are dropped.
  """
  messages: List[CompilerMessage] = []
  for raw_line in output.splitlines():
    line = raw_line.strip()
    if not line:
      continue

    for severity, regex, has_location in OUTPUT_PATTERNS:
      match = regex.search(line)
      if not match:
        continue
      if has_location:
        file, line_no, text = match.group(1).strip(), int(match.group(2)), match.group(3).strip()
      else:
        file, line_no, text = None, None, match.group(1).strip()
      messages.append(
        CompilerMessage(
          severity=severity,
          message=text,
          file=file,
          line=line_no,
          category=categorize_error(text),
          raw=line,
        )
      )
      break
  return messages


def extract_context(source: str, line: int, context_lines: int = 3) -> List[ContextLine]:
  """
  Returns the source lines surrounding a reported line.

  Args:
      source (str): The compiled source.
      line (int): 1-based line of the message.
      context_lines (int): Lines to include on each side.

  Returns:
      List[ContextLine]: The window, with the reported line marked.
  """
  lines = source.split("\n")
  start = max(0, line - context_lines - 1)
  end = min(len(lines), line + context_lines)
  return [ContextLine(number=i + 1, content=lines[i], is_error=(i + 1 == line)) for i in range(start, end)]

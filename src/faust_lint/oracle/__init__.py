"""
Compilation Oracle Package.
"""

from faust_lint.oracle.compiler import CompilationResult, FaustCompiler
from faust_lint.oracle.errors import CompilerMessage, categorize_error, extract_context, parse_compiler_output

__all__ = [
  "CompilationResult",
  "CompilerMessage",
  "FaustCompiler",
  "categorize_error",
  "extract_context",
  "parse_compiler_output",
]

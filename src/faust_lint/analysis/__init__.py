"""
Analysis Package.

Tokenizer, structural analyzer, linter and quality scorer for Faust sources.
"""

from faust_lint.analysis.linter import Linter
from faust_lint.analysis.parser import StructuralAnalysis, StructuralAnalyzer
from faust_lint.analysis.pipeline import SourceAnalysis, analyze_source
from faust_lint.analysis.scoring import quality_score
from faust_lint.analysis.tokens import CleanedSource, FaustLexer, Token, TokenKind

__all__ = [
  "CleanedSource",
  "FaustLexer",
  "Linter",
  "SourceAnalysis",
  "StructuralAnalysis",
  "StructuralAnalyzer",
  "Token",
  "TokenKind",
  "analyze_source",
  "quality_score",
]

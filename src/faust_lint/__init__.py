"""
faust-lint Package.

Static analyzer and auto-fixer for Faust DSP sources (`.dsp` files).

Usage
-----

.. code-block:: python

    import faust_lint

    report = faust_lint.analyze('freq = 440;\\nprocess = os.osc(freq);')
    print(report.score, [d.category for d in report.diagnostics])
    # 100 ['missing-import']

    result = faust_lint.fix('freq = 440;\\nprocess = os.osc(freq);', mode="safe")
    print(result.fixed_source)
    # import("stdfaust.lib");
    #
    # freq = 440;
    # process = os.osc(freq);
"""

from pathlib import Path
from typing import Optional, Union

from faust_lint.analysis.pipeline import analyze_source
from faust_lint.config import LintConfig
from faust_lint.enums import FixMode
from faust_lint.fixes.orchestrator import AutoFixOrchestrator, fix_file
from faust_lint.models import AnalysisReport, Diagnostic, FixReport
from faust_lint.oracle.compiler import FaustCompiler

__version__ = "0.1.0"


def analyze(code: str, config: Optional[LintConfig] = None, compile: bool = False) -> AnalysisReport:
  """
  Analyzes a Faust source.

  Args:
      code (str): Source text.
      config (Optional[LintConfig]): Settings; defaults if omitted.
      compile (bool): Also run the compilation oracle.

  Returns:
      AnalysisReport: Diagnostics, metrics, structure summary and score.
  """
  config = config or LintConfig()
  report = analyze_source(code, config).to_report()
  if compile:
    report.compilation = FaustCompiler(config).check(code).model_dump(mode="json")
  return report


def fix(
  code: str,
  mode: Union[FixMode, str] = FixMode.MODERATE,
  backup_path: Optional[Union[str, Path]] = None,
  config: Optional[LintConfig] = None,
) -> FixReport:
  """
  Iteratively fixes a Faust source.

  Args:
      code (str): Source text.
      mode (Union[FixMode, str]): `safe`, `moderate` or `all`.
      backup_path (Optional[Union[str, Path]]): Where to save `code` before the first accepted rewrite.
      config (Optional[LintConfig]): Settings; defaults if omitted.

  Returns:
      FixReport: Fixed source and session record.
  """
  backup = Path(backup_path) if backup_path is not None else None
  return AutoFixOrchestrator(mode, config).run(code, backup_path=backup)


__all__ = [
  "AnalysisReport",
  "Diagnostic",
  "FixMode",
  "FixReport",
  "LintConfig",
  "__version__",
  "analyze",
  "fix",
  "fix_file",
]

"""
Compilation Oracle.

Optionally confirms an analysis by running the real `faust` compiler on the
source. The compiler is an external tool: when it is missing or exceeds its
timeout, the result is `skipped` rather than an error.

Concurrent invocations (e.g. from the batch runner's thread pool) are bounded
by a semaphore shared by all checks of one `FaustCompiler`.
"""

import os
import shutil
import subprocess
import tempfile
import threading
from typing import List, Optional

from pydantic import BaseModel, Field

from faust_lint.config import LintConfig
from faust_lint.enums import CompileStatus
from faust_lint.oracle.errors import CompilerMessage, parse_compiler_output
from faust_lint.utils.console import log_warning


class CompilationResult(BaseModel):
  """
  Outcome of one compiler run.
  """

  status: CompileStatus
  compilable: Optional[bool] = Field(None, description="None when the compiler did not run.")
  raw_output: str = ""
  messages: List[CompilerMessage] = Field(default_factory=list)
  reason: Optional[str] = Field(None, description="Why the check was skipped.")

  @property
  def errors(self) -> List[CompilerMessage]:
    return [m for m in self.messages if m.severity == "error"]


class FaustCompiler:
  """
  Wrapper around the `faust` executable.
  """

  def __init__(self, config: Optional[LintConfig] = None) -> None:
    """
    Args:
        config (Optional[LintConfig]): Compiler path, arguments, timeout and concurrency.
    """
    self.config = config or LintConfig()
    self._slots = threading.BoundedSemaphore(self.config.compiler_max_concurrent)

  def executable(self) -> Optional[str]:
    """
    Resolves the compiler on PATH.

    Returns:
        Optional[str]: Absolute path, or None if not installed.
    """
    return shutil.which(self.config.compiler_path)

  def is_available(self) -> bool:
    return self.executable() is not None

  def check(self, code: str) -> CompilationResult:
    """
    Compiles `code` and reports whether it builds.

    Args:
        code (str): Faust source text.

    Returns:
        CompilationResult: `compiled`, `failed`, or `skipped` with a reason.
    """
    exe = self.executable()
    if exe is None:
      reason = f"Compiler '{self.config.compiler_path}' not found on PATH"
      log_warning(reason)
      return CompilationResult(status=CompileStatus.SKIPPED, reason=reason)

    fd, dsp_path = tempfile.mkstemp(suffix=".dsp", prefix="faust_lint_")
    try:
      with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(code)
      with self._slots:
        return self._run(exe, dsp_path)
    finally:
      os.unlink(dsp_path)

  def _run(self, exe: str, dsp_path: str) -> CompilationResult:
    timeout = self.config.compiler_timeout
    with tempfile.TemporaryDirectory(prefix="faust_lint_out_") as out_dir:
      command = [exe, *self.config.compiler_args, "-o", os.path.join(out_dir, "out.cpp"), dsp_path]
      try:
        proc = subprocess.run(command, capture_output=True, text=True, timeout=timeout)
      except subprocess.TimeoutExpired:
        reason = f"Compiler timed out after {timeout}s"
        log_warning(reason)
        return CompilationResult(status=CompileStatus.SKIPPED, reason=reason)
      except OSError as e:
        reason = f"Could not run compiler: {e}"
        log_warning(reason)
        return CompilationResult(status=CompileStatus.SKIPPED, reason=reason)

    output = "\n".join(part for part in (proc.stdout, proc.stderr) if part)
    messages = parse_compiler_output(output)
    compiled = proc.returncode == 0 and not any(m.severity == "error" for m in messages)
    return CompilationResult(
      status=CompileStatus.COMPILED if compiled else CompileStatus.FAILED,
      compilable=compiled,
      raw_output=output,
      messages=messages,
    )

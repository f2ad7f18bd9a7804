"""
Exceptions raised by faust-lint.

Analysis and fixing are total over arbitrary input: malformed sources produce
diagnostics, not exceptions. The classes here cover the few conditions that
must reach the caller or that rules use to signal a failed transform.
"""


class FaustLintError(Exception):
  """Base class for faust-lint errors."""


class SourceTooLargeError(FaustLintError, ValueError):
  """
  Raised when an input exceeds the configured size limit.
  """

  def __init__(self, size: int, limit: int):
    self.size = size
    self.limit = limit
    super().__init__(f"Source is {size} bytes, exceeding the configured limit of {limit} bytes.")


class FixApplicationError(FaustLintError):
  """
  Raised by a fix rule whose predicate held but whose transform could not run.

  The orchestrator records it as a failure and disables the rule for the rest
  of the session.
  """

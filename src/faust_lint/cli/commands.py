"""
CLI Command Handlers Facade.

Re-exports the handlers from `faust_lint.cli.handlers` so the dispatcher (and
tests patching it) have a single import point.
"""

from faust_lint.cli.handlers.analyze import handle_analyze
from faust_lint.cli.handlers.batch import handle_batch
from faust_lint.cli.handlers.fix import handle_fix

__all__ = ["handle_analyze", "handle_batch", "handle_fix"]

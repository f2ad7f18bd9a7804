from .analyze import handle_analyze
from .batch import handle_batch
from .fix import handle_fix

__all__ = [
  "handle_analyze",
  "handle_batch",
  "handle_fix",
]

"""
Entry point for module execution (``python -m faust_lint``).

This module delegates execution to the CLI handler in ``faust_lint.cli.__main__``.
"""

import sys
from faust_lint.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())

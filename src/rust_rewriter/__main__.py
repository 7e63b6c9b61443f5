"""
Entry point for module execution (``python -m rust_rewriter``).

This module delegates execution to the CLI handler in ``rust_rewriter.cli.__main__``.
"""

import sys
from rust_rewriter.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())

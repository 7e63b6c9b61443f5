"""
CLI Command Handlers Facade.

This module re-exports handlers from `rust_rewriter.cli.handlers` so tests
can patch a single module.
"""

from rust_rewriter.cli.handlers.apply import handle_apply, _emit_files, _print_report
from rust_rewriter.cli.handlers.preview import handle_preview

# Re-export dependent classes to satisfy test patches that target this module
from rust_rewriter.core.engine import RewriteEngine
from rust_rewriter.core.rewrite.plan import RewritePlan

__all__ = [
  "RewriteEngine",
  "RewritePlan",
  "_emit_files",
  "_print_report",
  "handle_apply",
  "handle_preview",
]

"""
Rewrite Error Taxonomy.

Unattributable edits are not errors at all: the Distributor drops them with a
warning. Everything below signals either an internal-consistency fault
(`RewriteConsistencyError`), which aborts emission of the affected file, or a
rewrite tree built in a shape the renderer must never see
(`MalformedRewriteError`).
"""

from typing import Any, Optional


class RewriteError(Exception):
  """
  Base class for all rewriting failures.

  Attributes:
      span: The span that triggered the failure, if known.
      node: The rewrite node that triggered the failure, if known.
  """

  def __init__(self, message: str, span: Optional[Any] = None, node: Optional[Any] = None):
    self.span = span
    self.node = node
    super().__init__(message)

  def __str__(self) -> str:
    msg = super().__str__()
    if self.span is not None:
      msg = f"{msg} (at {self.span})"
    return msg


class RewriteConsistencyError(RewriteError):
  """An internal invariant of the pipeline was violated."""


class SpanCollisionError(RewriteConsistencyError):
  """Two rewrites claim the same span, or two spans overlap without nesting."""


class SpanBoundsError(RewriteConsistencyError):
  """A span lies outside its file or cuts a UTF-8 sequence in half."""


class IrreconcilableEditError(RewriteConsistencyError):
  """Edit requests grouped onto one expression cannot be combined."""


class PrecedenceGapError(RewriteConsistencyError):
  """The precedence table has no rule for a node or operand slot."""


class MalformedRewriteError(RewriteError):
  """A rewrite tree violates a construction-time contract."""

"""
Edit Distribution.

Attributes each `EditRequest` to the surface expression that owns its
location, groups requests per expression and converts every group into one
`RewriteNode`.

Attribution uses the innermost owning expression, so an edit on a
sub-expression never forces a rewrite of the whole enclosing statement.
Requests whose location has no surface owner (compiler-introduced
scaffolding) are dropped with a warning; the run continues with a partial
rewrite.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from rust_rewriter.core.rewrite.convert import ConversionContext, convert_transformations
from rust_rewriter.core.rewrite.errors import IrreconcilableEditError
from rust_rewriter.core.rewrite.model import EditRequest
from rust_rewriter.core.rewrite.nodes import RewriteNode
from rust_rewriter.core.rewrite.output import RewriteOutput
from rust_rewriter.core.rewrite.unlower import SurfaceExpr, UnloweringLookup, innermost
from rust_rewriter.core.tracer import TraceLogger, get_tracer
from rust_rewriter.utils.console import log_warning


class ExprRewrites:
  """
  The edit requests attributed to one surface expression, in execution order.
  """

  def __init__(self, expr: SurfaceExpr):
    self.expr = expr
    self.requests: List[EditRequest] = []

  def convert(self) -> RewriteNode:
    ctx = ConversionContext(self.expr.span, self.expr.sub_spans)
    return convert_transformations((req.transformation for req in self.requests), ctx)


class Distributor:
  """
  Groups and merges edit requests by owning surface expression.

  Args:
      lookup: The unlowering lookup for the analysed bodies.
      tracer: Trace sink (defaults to the global tracer).

  Attributes:
      dropped: Requests that could not be attributed to any expression.
  """

  def __init__(self, lookup: UnloweringLookup, tracer: Optional[TraceLogger] = None):
    self.lookup = lookup
    self.tracer = tracer or get_tracer()
    self.dropped: List[EditRequest] = []

  def group(self, requests: Iterable[EditRequest]) -> Dict[str, ExprRewrites]:
    """
    Attributes requests to their innermost owning expression.

    Args:
        requests: Edit requests in execution order.

    Returns:
        Dict[str, ExprRewrites]: Groups keyed by expression id, in first-seen order.

    Raises:
        IrreconcilableEditError: If one expression id is reported with two spans.
    """
    groups: Dict[str, ExprRewrites] = {}
    for req in requests:
      owner = innermost(self.lookup.resolve(req.location))
      if owner is None:
        self._drop(req, "no surface expression owns this location")
        continue

      group = groups.get(owner.expr_id)
      if group is None:
        group = groups[owner.expr_id] = ExprRewrites(owner)
      elif group.expr.span != owner.span:
        raise IrreconcilableEditError(
          f"Expression {owner.expr_id} reported with spans {group.expr.span} and {owner.span}",
          span=owner.span,
        )
      group.requests.append(req)
      self.tracer.log_attribution(str(req.location), owner.expr_id, str(owner.span))
    return groups

  def distribute(self, requests: Iterable[EditRequest]) -> RewriteOutput:
    """
    Converts edit requests into one rewrite per owning expression.

    Args:
        requests: Edit requests in execution order.

    Returns:
        RewriteOutput: One node per rewritten expression span.
    """
    with self.tracer.phase("distribute", "Attribute edit requests to surface expressions"):
      output = RewriteOutput()
      for group in self.group(requests).values():
        output.add(group.expr.span, group.convert())
    return output

  def _drop(self, req: EditRequest, reason: str) -> None:
    log_warning(f"Dropping {req.transformation.kind} edit at {req.location}: {reason}")
    self.tracer.log_dropped(str(req.location), reason)
    self.dropped.append(req)


def distribute(lookup: UnloweringLookup, requests: Iterable[EditRequest]) -> Tuple[RewriteOutput, List[EditRequest]]:
  """
  Convenience wrapper returning the output and the dropped requests.
  """
  distributor = Distributor(lookup)
  output = distributor.distribute(requests)
  return output, distributor.dropped

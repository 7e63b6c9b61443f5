"""
Unlowering Lookup.

The mapping from mid-level locations back to the surface expressions they were
lowered from is computed outside this package. The Distributor only depends on
the `UnloweringLookup` interface; `UnloweringTable` is the in-memory
implementation used by rewrite plans and tests.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from rust_rewriter.core.rewrite.model import Location, Span


class SurfaceExpr(BaseModel):
  """
  A surface expression that owns one or more mid-level locations.

  Attributes:
      expr_id: Stable identity of the expression (unique per run).
      span: The expression's span in the original source.
      sub_spans: Spans of its positional children, used to resolve `Sub(i)`.
  """

  model_config = ConfigDict(frozen=True)

  expr_id: str
  span: Span
  sub_spans: Tuple[Span, ...] = Field(default=())


class UnloweringLookup(ABC):
  """Consumed interface: which surface expressions own a location."""

  @abstractmethod
  def resolve(self, location: Location) -> Sequence[SurfaceExpr]:
    """
    Returns every surface expression whose span contains the source position
    the location was lowered from. An empty result means the location only
    exists in compiler-introduced scaffolding.
    """


class UnloweringTable(UnloweringLookup):
  """Dictionary-backed lookup."""

  def __init__(self, entries: Optional[Iterable[Tuple[Location, Sequence[SurfaceExpr]]]] = None):
    self._table: Dict[Location, List[SurfaceExpr]] = {}
    for location, exprs in entries or ():
      for expr in exprs:
        self.add(location, expr)

  def add(self, location: Location, expr: SurfaceExpr) -> None:
    self._table.setdefault(location, []).append(expr)

  def resolve(self, location: Location) -> Sequence[SurfaceExpr]:
    return tuple(self._table.get(location, ()))

  def __len__(self) -> int:
    return len(self._table)


def innermost(candidates: Sequence[SurfaceExpr]) -> Optional[SurfaceExpr]:
  """
  Picks the smallest candidate expression.

  All candidates contain the originating source position, so the narrowest
  span is the innermost one. Ties keep the first candidate reported.
  """
  best: Optional[SurfaceExpr] = None
  for expr in candidates:
    if best is None or expr.span.width < best.span.width:
      best = expr
  return best

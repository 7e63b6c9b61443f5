"""
Transformation Conversion.

Lifts the abstract `Transformation`s attached to one surface expression into a
single `RewriteNode`. Transformations are folded in execution order: each one
wraps the node produced so far, starting from `Identity` (the expression's
original text). Children the analysis did not touch are referenced
positionally through `Sub`.

The same fold is reused by the shim generator, starting from `FnArg(i)`
instead of `Identity`.
"""

from typing import Callable, Dict, Iterable, Optional, Sequence

from rust_rewriter.enums import Mutability
from rust_rewriter.core.rewrite.errors import IrreconcilableEditError
from rust_rewriter.core.rewrite.model import (
  Borrow,
  CastTo,
  OffsetSlice,
  RawToCell,
  RawToRef,
  Span,
  TakeAddress,
  Transformation,
)
from rust_rewriter.core.rewrite.nodes import (
  AddrOf,
  BlockBuilder,
  Cast,
  Deref,
  Identity,
  MethodCall,
  Ref,
  RemovedCast,
  RewriteNode,
  SliceRange,
  Sub,
  Text,
)


class ConversionContext:
  """
  Positional context of the expression being rewritten.

  Args:
      span: Span of the expression (used in error reports).
      sub_spans: Spans of its positional children.
  """

  def __init__(self, span: Optional[Span] = None, sub_spans: Sequence[Span] = ()):
    self.span = span
    self.sub_spans = tuple(sub_spans)

  def sub(self, index: int) -> Sub:
    """
    A resolved reference to the `index`-th child.

    Raises:
        IrreconcilableEditError: If the expression has no such child.
    """
    if index >= len(self.sub_spans):
      raise IrreconcilableEditError(
        f"Expression has {len(self.sub_spans)} children, child {index} requested",
        span=self.span,
      )
    return Sub(index, self.sub_spans[index])


def _require_original(node: RewriteNode, kind: str, ctx: ConversionContext) -> None:
  # Transformations that replace the expression wholesale must come first.
  if not isinstance(node, Identity):
    raise IrreconcilableEditError(f"'{kind}' cannot follow another rewrite ({node})", span=ctx.span, node=node)


def _cast(node: RewriteNode, t: CastTo, ctx: ConversionContext) -> RewriteNode:
  return Cast(node, t.ty)


def _remove_cast(node: RewriteNode, t: Transformation, ctx: ConversionContext) -> RewriteNode:
  # One cast may lower to several statements that each ask for its removal.
  if isinstance(node, RemovedCast):
    return node
  _require_original(node, t.kind, ctx)
  return RemovedCast(ctx.sub(0))


def _borrow(node: RewriteNode, t: Borrow, ctx: ConversionContext) -> RewriteNode:
  return Ref(node, t.mutability)


def _addr_of(node: RewriteNode, t: TakeAddress, ctx: ConversionContext) -> RewriteNode:
  return AddrOf(node, t.mutability)


def _deref(node: RewriteNode, t: Transformation, ctx: ConversionContext) -> RewriteNode:
  return Deref(node)


def _raw_to_ref(node: RewriteNode, t: RawToRef, ctx: ConversionContext) -> RewriteNode:
  return Ref(Deref(node), t.mutability)


def _cell_as_ptr(node: RewriteNode, t: Transformation, ctx: ConversionContext) -> RewriteNode:
  return MethodCall("as_ptr", node)


def _cell_get(node: RewriteNode, t: Transformation, ctx: ConversionContext) -> RewriteNode:
  return MethodCall("get", node)


def _raw_to_cell(node: RewriteNode, t: RawToCell, ctx: ConversionContext) -> RewriteNode:
  return Ref(Deref(Cast(node, f"*const std::cell::Cell<{t.pointee}>")), Mutability.NOT)


def _offset_slice(node: RewriteNode, t: OffsetSlice, ctx: ConversionContext) -> RewriteNode:
  _require_original(node, t.kind, ctx)
  builder = BlockBuilder().let([("arr", ctx.sub(0)), ("idx", ctx.sub(1))])
  return builder.finish(Ref(SliceRange(Text("arr"), Cast(Text("idx"), "usize")), t.mutability))


_BUILDERS: Dict[str, Callable[[RewriteNode, Transformation, ConversionContext], RewriteNode]] = {
  "cast": _cast,
  "remove_cast": _remove_cast,
  "borrow": _borrow,
  "addr_of": _addr_of,
  "deref": _deref,
  "raw_to_ref": _raw_to_ref,
  "cell_as_ptr": _cell_as_ptr,
  "cell_get": _cell_get,
  "raw_to_cell": _raw_to_cell,
  "offset_slice": _offset_slice,
}


def apply_transformation(node: RewriteNode, transformation: Transformation, ctx: ConversionContext) -> RewriteNode:
  """
  Wraps `node` with the effect of one transformation.

  Args:
      node: The rewrite built so far for the expression.
      transformation: The next transformation, in execution order.
      ctx: Positional context of the expression.

  Returns:
      RewriteNode: A new node; `node` itself is left untouched.
  """
  builder = _BUILDERS[transformation.kind]
  return builder(node, transformation, ctx)


def convert_transformations(
  transformations: Iterable[Transformation],
  ctx: Optional[ConversionContext] = None,
  base: Optional[RewriteNode] = None,
) -> RewriteNode:
  """
  Folds transformations, in order, into one rewrite node.

  Args:
      transformations: Transformations attributed to one expression.
      ctx: Positional context (defaults to an expression with no children).
      base: Starting node (defaults to `Identity`).

  Returns:
      RewriteNode: The composite rewrite; `Identity` if nothing applies.
  """
  ctx = ctx or ConversionContext()
  node: RewriteNode = base if base is not None else Identity()
  for transformation in transformations:
    node = apply_transformation(node, transformation, ctx)
  return node

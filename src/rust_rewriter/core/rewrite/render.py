"""
Rewrite Renderer.

Turns a `RewriteNode` tree into text. The renderer owns operator syntax and
parenthesization (via `precedence`); everything that depends on the original
source is delegated to a `Sink`:

* `PreviewSink` renders placeholders (`$e`, `$0`, `<span a.rs:3..7>`). It backs
  `str(node)` and is what tests and debug output compare against.
* The Applier's `SourceSink` (see `apply`) substitutes the real original text.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence, Type

from rust_rewriter.core.rewrite.errors import MalformedRewriteError, PrecedenceGapError
from rust_rewriter.core.rewrite.model import Span
from rust_rewriter.core.rewrite.nodes import (
  AddrOf,
  Block,
  Call,
  Cast,
  DefineFn,
  Deref,
  Extract,
  FnArg,
  GenericParams,
  Identity,
  Index,
  Let,
  LitZero,
  MethodCall,
  Print,
  Ref,
  RemovedCast,
  RewriteNode,
  SliceRange,
  StaticMut,
  Sub,
  Text,
  TyCtor,
  TyPtr,
  TyRef,
  TySlice,
)
from rust_rewriter.core.rewrite.precedence import Prec, needs_parens, operand_prec


class Sink(ABC):
  """
  Supplies the text of everything a rewrite takes from the original source.

  Attributes:
      parenthesize_exprs: Wrap original expression text in parentheses whenever
          it is placed in a slot requiring more than `Prec.NONE`. The original
          text's own precedence is unknown, so this is the only safe choice when
          emitting real code.
  """

  parenthesize_exprs: bool = False

  @abstractmethod
  def emit_expr(self) -> str:
    """Text of the expression being rewritten (`Identity`)."""

  @abstractmethod
  def emit_sub(self, index: int, span: Optional[Span]) -> str:
    """Text of the `index`-th child of the expression being rewritten (`Sub`)."""

  @abstractmethod
  def emit_span(self, span: Span) -> str:
    """Verbatim original text of `span` (`Extract`, `StaticMut`)."""


class PreviewSink(Sink):
  """Placeholder sink used for Display-style previews."""

  def emit_expr(self) -> str:
    return "$e"

  def emit_sub(self, index: int, span: Optional[Span]) -> str:
    return f"${index}"

  def emit_span(self, span: Span) -> str:
    return f"<span {span}>"


class Renderer:
  """
  Recursive, precedence-aware renderer for one rewrite tree.

  Args:
      sink: Source of original text.
      sub_spans: Positional child spans of the rewritten expression, used for
          `Sub` nodes whose span has not been resolved yet.
  """

  def __init__(self, sink: Sink, sub_spans: Optional[Sequence[Span]] = None):
    self.sink = sink
    self.sub_spans = tuple(sub_spans or ())
    self._fn_arity: List[int] = []

  def render(self, node: RewriteNode, required: Prec = Prec.NONE) -> str:
    """
    Renders `node` for a slot requiring at least `required` precedence.

    Raises:
        PrecedenceGapError: If the node has no emitter or precedence rule.
        MalformedRewriteError: If the tree violates a construction contract.
    """
    emitter = _EMITTERS.get(type(node))
    if emitter is None:
      raise PrecedenceGapError(f"No renderer for {type(node).__name__}", node=node)
    if isinstance(node, Let) and required > Prec.NONE:
      raise MalformedRewriteError("Let is only valid as a block statement", node=node)

    text = emitter(self, node, required)
    if needs_parens(required, node):
      return f"({text})"
    return text

  def child(self, parent: RewriteNode, slot: str, node: RewriteNode) -> str:
    return self.render(node, operand_prec(type(parent), slot))

  def children(self, parent: RewriteNode, slot: str, nodes: Sequence[RewriteNode]) -> List[str]:
    return [self.child(parent, slot, n) for n in nodes]

  def original(self, text: str, required: Prec) -> str:
    if self.sink.parenthesize_exprs and required > Prec.NONE:
      return f"({text})"
    return text

  def resolve_sub(self, node: Sub) -> Optional[Span]:
    if node.span is not None:
      return node.span
    if node.index < len(self.sub_spans):
      return self.sub_spans[node.index]
    return None

  def fn_arg(self, node: FnArg) -> str:
    if not self._fn_arity:
      raise MalformedRewriteError("FnArg used outside of a DefineFn body", node=node)
    if not 0 <= node.index < self._fn_arity[-1]:
      raise MalformedRewriteError(f"FnArg({node.index}) out of range for {self._fn_arity[-1]} arguments", node=node)
    return f"arg{node.index}"


# --- Emitters ---
# Each emitter renders the node's own syntax; the caller adds parentheses.


def _emit_identity(r: Renderer, node: Identity, required: Prec) -> str:
  return r.original(r.sink.emit_expr(), required)


def _emit_sub(r: Renderer, node: Sub, required: Prec) -> str:
  return r.original(r.sink.emit_sub(node.index, r.resolve_sub(node)), required)


def _emit_text(r: Renderer, node: Text, required: Prec) -> str:
  return node.text


def _emit_extract(r: Renderer, node: Extract, required: Prec) -> str:
  return r.sink.emit_span(node.span)


def _emit_ref(r: Renderer, node: Ref, required: Prec) -> str:
  return f"&{node.mutability.ref_prefix}{r.child(node, 'inner', node.inner)}"


def _emit_addr_of(r: Renderer, node: AddrOf, required: Prec) -> str:
  suffix = "_mut" if node.mutability.is_mut else ""
  return f"core::ptr::addr_of{suffix}!({r.child(node, 'inner', node.inner)})"


def _emit_deref(r: Renderer, node: Deref, required: Prec) -> str:
  return f"*{r.child(node, 'inner', node.inner)}"


def _emit_index(r: Renderer, node: Index, required: Prec) -> str:
  return f"{r.child(node, 'array', node.array)}[{r.child(node, 'index', node.index)}]"


def _emit_slice_range(r: Renderer, node: SliceRange, required: Prec) -> str:
  lo = r.child(node, "lo", node.lo) if node.lo is not None else ""
  hi = r.child(node, "hi", node.hi) if node.hi is not None else ""
  return f"{r.child(node, 'array', node.array)}[{lo}..{hi}]"


def _emit_cast(r: Renderer, node: Cast, required: Prec) -> str:
  return f"{r.child(node, 'inner', node.inner)} as {node.ty}"


def _emit_removed_cast(r: Renderer, node: RemovedCast, required: Prec) -> str:
  return r.render(node.inner, required)


def _emit_lit_zero(r: Renderer, node: LitZero, required: Prec) -> str:
  return "0"


def _emit_call(r: Renderer, node: Call, required: Prec) -> str:
  return f"{node.func}({', '.join(r.children(node, 'args', node.args))})"


def _emit_method_call(r: Renderer, node: MethodCall, required: Prec) -> str:
  receiver = r.child(node, "receiver", node.receiver)
  return f"{receiver}.{node.method}({', '.join(r.children(node, 'args', node.args))})"


def _emit_block(r: Renderer, node: Block, required: Prec) -> str:
  parts = [f"{text};" for text in r.children(node, "stmts", node.stmts)]
  if node.tail is not None:
    parts.append(r.child(node, "tail", node.tail))
  if not parts:
    return "{}"
  return "{ " + " ".join(parts) + " }"


def _emit_let(r: Renderer, node: Let, required: Prec) -> str:
  names = [name for name, _ in node.bindings]
  values = r.children(node, "bindings", [value for _, value in node.bindings])
  if len(names) == 1:
    return f"let {names[0]} = {values[0]}"
  return f"let ({', '.join(names)}) = ({', '.join(values)})"


def _emit_print(r: Renderer, node: Print, required: Prec) -> str:
  return node.text


def _emit_ty_ptr(r: Renderer, node: TyPtr, required: Prec) -> str:
  return f"*{node.mutability.ptr_keyword} {r.child(node, 'inner', node.inner)}"


def _emit_ty_ref(r: Renderer, node: TyRef, required: Prec) -> str:
  lifetime = f"{node.lifetime} " if node.lifetime else ""
  return f"&{lifetime}{node.mutability.ref_prefix}{r.child(node, 'inner', node.inner)}"


def _emit_ty_slice(r: Renderer, node: TySlice, required: Prec) -> str:
  return f"[{r.child(node, 'inner', node.inner)}]"


def _emit_ty_ctor(r: Renderer, node: TyCtor, required: Prec) -> str:
  if not node.args:
    return node.name
  return f"{node.name}<{', '.join(r.children(node, 'args', node.args))}>"


def _emit_generic_params(r: Renderer, node: GenericParams, required: Prec) -> str:
  return f"<{', '.join(r.children(node, 'args', node.args))}>"


def _emit_static_mut(r: Renderer, node: StaticMut, required: Prec) -> str:
  keyword = "static mut " if node.mutability.is_mut else "static "
  return keyword + r.sink.emit_span(node.span)


def _emit_define_fn(r: Renderer, node: DefineFn, required: Prec) -> str:
  arg_tys = r.children(node, "arg_tys", node.arg_tys)
  params = ", ".join(f"arg{i}: {ty}" for i, ty in enumerate(arg_tys))
  ret = f" -> {r.child(node, 'return_ty', node.return_ty)}" if node.return_ty is not None else ""

  r._fn_arity.append(len(node.arg_tys))
  try:
    body = r.child(node, "body", node.body)
  finally:
    r._fn_arity.pop()
  if not isinstance(node.body, Block):
    body = "{ " + body + " }"
  return f"fn {node.name}({params}){ret} {body}"


def _emit_fn_arg(r: Renderer, node: FnArg, required: Prec) -> str:
  return r.fn_arg(node)


_EMITTERS: Dict[Type[RewriteNode], Callable[[Renderer, RewriteNode, Prec], str]] = {
  Identity: _emit_identity,
  Sub: _emit_sub,
  Text: _emit_text,
  Extract: _emit_extract,
  Ref: _emit_ref,
  AddrOf: _emit_addr_of,
  Deref: _emit_deref,
  Index: _emit_index,
  SliceRange: _emit_slice_range,
  Cast: _emit_cast,
  RemovedCast: _emit_removed_cast,
  LitZero: _emit_lit_zero,
  Call: _emit_call,
  MethodCall: _emit_method_call,
  Block: _emit_block,
  Let: _emit_let,
  Print: _emit_print,
  TyPtr: _emit_ty_ptr,
  TyRef: _emit_ty_ref,
  TySlice: _emit_ty_slice,
  TyCtor: _emit_ty_ctor,
  GenericParams: _emit_generic_params,
  StaticMut: _emit_static_mut,
  DefineFn: _emit_define_fn,
  FnArg: _emit_fn_arg,
}


def render(node: RewriteNode, sink: Optional[Sink] = None, sub_spans: Optional[Sequence[Span]] = None) -> str:
  """
  Renders a rewrite tree to text.

  Args:
      node: The root of the rewrite tree.
      sink: Source of original text (defaults to placeholder previews).
      sub_spans: Child spans used to resolve unresolved `Sub` nodes.

  Returns:
      str: The replacement text.
  """
  return Renderer(sink or PreviewSink(), sub_spans).render(node)


def preview(node: RewriteNode) -> str:
  return Renderer(PreviewSink()).render(node)

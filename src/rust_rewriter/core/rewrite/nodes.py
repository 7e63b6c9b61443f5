"""
Rewrite Node Object Model.

A `RewriteNode` describes how to produce the replacement text for one span.
The set of variants is closed: the renderer and the precedence table each
carry exactly one entry per class defined here.

Nodes are frozen dataclasses whose children are stored in tuples, so a tree
is never mutated after construction; composition always builds new nodes.

`str(node)` renders the Display-style preview, where `$e` stands for the
original expression, `$N` for its N-th child and `<span ...>` for extracted
source text.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

from rust_rewriter.enums import Mutability
from rust_rewriter.core.rewrite.errors import MalformedRewriteError
from rust_rewriter.core.rewrite.model import Span


@dataclass(frozen=True)
class RewriteNode:
  """Base class of all rewrite variants."""

  def __str__(self) -> str:
    from rust_rewriter.core.rewrite.render import preview

    return preview(self)


def _freeze(node: RewriteNode, name: str) -> None:
  # Accept lists from callers but store tuples.
  value = getattr(node, name)
  if not isinstance(value, tuple):
    object.__setattr__(node, name, tuple(value))


# --- Leaves and references to original text ---


@dataclass(frozen=True)
class Identity(RewriteNode):
  """Take the original expression unchanged."""


@dataclass(frozen=True)
class Sub(RewriteNode):
  """
  The `index`-th positional child of the enclosing expression.

  `span` is filled in once the child's position has been resolved against the
  unlowering lookup; previews only need the index.
  """

  index: int
  span: Optional[Span] = None


@dataclass(frozen=True)
class Text(RewriteNode):
  """Fixed text, emitted as-is."""

  text: str


@dataclass(frozen=True)
class Extract(RewriteNode):
  """Verbatim text of `span` in the original source, before any rewriting."""

  span: Span


# --- Expression builders ---


@dataclass(frozen=True)
class Ref(RewriteNode):
  """`&e`, `&mut e`"""

  inner: RewriteNode
  mutability: Mutability = Mutability.NOT


@dataclass(frozen=True)
class AddrOf(RewriteNode):
  """`core::ptr::addr_of!(e)`, `core::ptr::addr_of_mut!(e)`"""

  inner: RewriteNode
  mutability: Mutability = Mutability.NOT


@dataclass(frozen=True)
class Deref(RewriteNode):
  """`*e`"""

  inner: RewriteNode


@dataclass(frozen=True)
class Index(RewriteNode):
  """`arr[idx]`"""

  array: RewriteNode
  index: RewriteNode


@dataclass(frozen=True)
class SliceRange(RewriteNode):
  """`arr[lo..hi]`; both bounds are optional."""

  array: RewriteNode
  lo: Optional[RewriteNode] = None
  hi: Optional[RewriteNode] = None


@dataclass(frozen=True)
class Cast(RewriteNode):
  """`e as T`"""

  inner: RewriteNode
  ty: str


@dataclass(frozen=True)
class RemovedCast(RewriteNode):
  """
  A redundant cast that has already been removed.

  Renders exactly as `inner`, but keeps the position addressable so that later
  rewrites of the same expression still apply.
  """

  inner: RewriteNode


@dataclass(frozen=True)
class LitZero(RewriteNode):
  """The integer literal `0`."""


@dataclass(frozen=True)
class Call(RewriteNode):
  """`func(args...)`"""

  func: str
  args: Tuple[RewriteNode, ...] = ()

  def __post_init__(self) -> None:
    _freeze(self, "args")


@dataclass(frozen=True)
class MethodCall(RewriteNode):
  """`receiver.method(args...)`"""

  method: str
  receiver: RewriteNode
  args: Tuple[RewriteNode, ...] = ()

  def __post_init__(self) -> None:
    _freeze(self, "args")


@dataclass(frozen=True)
class Let(RewriteNode):
  """
  A multi-variable binding, `let (x, y) = (e0, e1)`, without a trailing semicolon.

  The bindings are not hygienic: any `Identity` or `Sub` rendered later in the
  same block could be captured by them, so `Block` rejects that shape.
  """

  bindings: Tuple[Tuple[str, RewriteNode], ...]

  def __post_init__(self) -> None:
    object.__setattr__(self, "bindings", tuple((name, value) for name, value in self.bindings))
    if not self.bindings:
      raise MalformedRewriteError("Let requires at least one binding", node=self)


@dataclass(frozen=True)
class Block(RewriteNode):
  """
  `{ s1; s2; tail }`. A semicolon is emitted after every statement.
  """

  stmts: Tuple[RewriteNode, ...] = ()
  tail: Optional[RewriteNode] = None

  def __post_init__(self) -> None:
    _freeze(self, "stmts")
    check = _LetScope()
    for stmt in self.stmts:
      check.visit(stmt)
    if self.tail is not None:
      check.visit(self.tail, is_tail=True)


# --- Type builders ---


@dataclass(frozen=True)
class Print(RewriteNode):
  """A complete pretty-printed type, replacing the original annotation."""

  text: str


@dataclass(frozen=True)
class TyPtr(RewriteNode):
  """`*const T`, `*mut T`"""

  inner: RewriteNode
  mutability: Mutability = Mutability.NOT


@dataclass(frozen=True)
class TyRef(RewriteNode):
  """`&'a T`, `&'a mut T`; `lifetime=None` leaves the lifetime elided."""

  lifetime: Optional[str]
  inner: RewriteNode
  mutability: Mutability = Mutability.NOT


@dataclass(frozen=True)
class TySlice(RewriteNode):
  """`[T]`"""

  inner: RewriteNode


@dataclass(frozen=True)
class TyCtor(RewriteNode):
  """`Foo<T1, T2>`"""

  name: str
  args: Tuple[RewriteNode, ...] = ()

  def __post_init__(self) -> None:
    _freeze(self, "args")


@dataclass(frozen=True)
class GenericParams(RewriteNode):
  """`<'a, 'b, ...>`, for ADTs whose parameter list has its own span."""

  args: Tuple[RewriteNode, ...] = ()

  def __post_init__(self) -> None:
    _freeze(self, "args")


# --- Item builders ---


@dataclass(frozen=True)
class StaticMut(RewriteNode):
  """`static` <-> `static mut`, followed by the original text of `span`."""

  mutability: Mutability
  span: Span


@dataclass(frozen=True)
class DefineFn(RewriteNode):
  """
  `fn name(arg0: T0, ...) -> R { body }`.

  Inside `body`, `FnArg(i)` names the i-th argument.
  """

  name: str
  arg_tys: Tuple[RewriteNode, ...] = ()
  return_ty: Optional[RewriteNode] = None
  body: RewriteNode = field(default_factory=lambda: Block())

  def __post_init__(self) -> None:
    _freeze(self, "arg_tys")


@dataclass(frozen=True)
class FnArg(RewriteNode):
  """The name of the `index`-th argument of the enclosing `DefineFn`."""

  index: int


# --- Traversal helpers ---


def iter_children(node: RewriteNode) -> Iterator[Tuple[str, RewriteNode]]:
  """
  Yields `(slot, child)` pairs in field order.

  Args:
      node: Any rewrite node.

  Yields:
      The slot name (the dataclass field name) and the child node.
  """
  for f in dataclasses.fields(node):
    value = getattr(node, f.name)
    if isinstance(value, RewriteNode):
      yield f.name, value
    elif isinstance(value, tuple):
      for item in value:
        if isinstance(item, RewriteNode):
          yield f.name, item
        elif isinstance(item, tuple):
          # Let bindings: (name, value)
          for sub in item:
            if isinstance(sub, RewriteNode):
              yield f.name, sub


def walk(node: RewriteNode) -> Iterator[RewriteNode]:
  """Pre-order traversal of `node` and all its descendants."""
  yield node
  for _, child in iter_children(node):
    yield from walk(child)


def references_original(node: RewriteNode) -> bool:
  """True if rendering `node` would emit original expression text via `Identity` or `Sub`."""
  return any(isinstance(n, (Identity, Sub)) for n in walk(node))


class _LetScope:
  """Tracks whether a `Let` has been emitted in the current block."""

  def __init__(self) -> None:
    self.let_seen = False

  def visit(self, node: RewriteNode, is_tail: bool = False) -> None:
    if isinstance(node, Let):
      if is_tail:
        raise MalformedRewriteError("Let cannot be the tail expression of a block", node=node)
      if self.let_seen and any(references_original(value) for _, value in node.bindings):
        raise MalformedRewriteError("Let values reference original text after an earlier Let", node=node)
      self.let_seen = True
      return
    if self.let_seen and references_original(node):
      raise MalformedRewriteError("Identity/Sub used after a Let in the same block", node=node)


class BlockBuilder:
  """
  Incremental `Block` construction that enforces the `Let` scoping rule at
  each step, so the offending statement is reported where it is added.
  """

  def __init__(self) -> None:
    self._stmts: List[RewriteNode] = []
    self._scope = _LetScope()

  def let(self, bindings: Sequence[Tuple[str, RewriteNode]]) -> "BlockBuilder":
    node = Let(tuple(bindings))
    self._scope.visit(node)
    self._stmts.append(node)
    return self

  def push(self, stmt: RewriteNode) -> "BlockBuilder":
    self._scope.visit(stmt)
    self._stmts.append(stmt)
    return self

  def finish(self, tail: Optional[RewriteNode] = None) -> Block:
    if tail is not None:
      self._scope.visit(tail, is_tail=True)
    return Block(tuple(self._stmts), tail)


ALL_NODE_TYPES = (
  Identity,
  Sub,
  Text,
  Extract,
  Ref,
  AddrOf,
  Deref,
  Index,
  SliceRange,
  Cast,
  RemovedCast,
  LitZero,
  Call,
  MethodCall,
  Block,
  Let,
  Print,
  TyPtr,
  TyRef,
  TySlice,
  TyCtor,
  GenericParams,
  StaticMut,
  DefineFn,
  FnArg,
)

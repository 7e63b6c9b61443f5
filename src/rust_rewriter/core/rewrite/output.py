"""
Rewrite Output Container.

`RewriteOutput` is the hand-off between rewrite generators (the Distributor
and the sibling static/type/shim generators) and the Applier. It enforces the
one-span-one-node invariant at insertion time.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from rust_rewriter.core.rewrite.errors import SpanCollisionError
from rust_rewriter.core.rewrite.model import Span
from rust_rewriter.core.rewrite.nodes import Identity, RewriteNode
from rust_rewriter.core.tracer import get_tracer


class RewriteOutput:
  """
  Ordered mapping of `Span -> RewriteNode`, possibly covering several files.
  """

  def __init__(self, entries: Optional[Iterable[Tuple[Span, RewriteNode]]] = None):
    self._entries: Dict[Span, RewriteNode] = {}
    for span, node in entries or ():
      self.add(span, node)

  def add(self, span: Span, node: RewriteNode) -> None:
    """
    Records `node` as the rewrite of `span`.

    A second node for an existing span is merged: equal nodes collapse and an
    `Identity` yields to the other node, since it describes no change.

    Raises:
        SpanCollisionError: If two different non-identity nodes claim `span`.
    """
    existing = self._entries.get(span)
    if existing is None or isinstance(existing, Identity):
      self._entries[span] = node
    elif existing == node or isinstance(node, Identity):
      pass
    else:
      raise SpanCollisionError(f"Conflicting rewrites {existing} and {node}", span=span, node=node)

    if existing is not None:
      get_tracer().log_merge(str(span), str(existing), str(self._entries[span]))

  def merge(self, other: "RewriteOutput") -> None:
    """Adds every entry of `other`, with the same collision rules as `add`."""
    for span, node in other.items():
      self.add(span, node)

  def get(self, span: Span) -> Optional[RewriteNode]:
    return self._entries.get(span)

  def items(self) -> Iterator[Tuple[Span, RewriteNode]]:
    return iter(list(self._entries.items()))

  def files(self) -> List[str]:
    """Files touched by at least one rewrite, in first-seen order."""
    return list(dict.fromkeys(span.file for span in self._entries))

  def for_file(self, file: str) -> List[Tuple[Span, RewriteNode]]:
    """Entries of `file`, sorted by start offset (enclosing spans first)."""
    entries = [(span, node) for span, node in self._entries.items() if span.file == file]
    entries.sort(key=lambda item: item[0].sort_key())
    return entries

  def __len__(self) -> int:
    return len(self._entries)

  def __contains__(self, span: Span) -> bool:
    return span in self._entries

  def __repr__(self) -> str:
    body = ", ".join(f"{span}: {node}" for span, node in self._entries.items())
    return f"RewriteOutput({body})"

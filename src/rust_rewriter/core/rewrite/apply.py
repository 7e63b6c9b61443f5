"""
Rewrite Application.

Produces new file contents from a `RewriteOutput` in a single pass over each
file's original text:

1. Collect the file's spans, sort them by start offset and arrange them in a
   nesting forest. Partial overlaps and out-of-bounds spans are rejected
   before any text is emitted.
2. Copy unrewritten text up to each top-level span, then the rendered node,
   then the remaining suffix.

A rewrite nested inside another one is emitted where the parent renders the
original text containing it (its `Identity` or a `Sub`). All offsets refer to
the original text, so no rewrite ever shifts another one's span, and
rendered text is never scanned again.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from rust_rewriter.core.rewrite.errors import MalformedRewriteError, SpanBoundsError, SpanCollisionError
from rust_rewriter.core.rewrite.model import Span
from rust_rewriter.core.rewrite.nodes import RewriteNode
from rust_rewriter.core.rewrite.output import RewriteOutput
from rust_rewriter.core.rewrite.render import Renderer, Sink
from rust_rewriter.core.tracer import get_tracer
from rust_rewriter.utils.console import log_warning

CHECK_DIRECTIVE = "// CHECK"


# --- Source access ---


class SourceMap(ABC):
  """Read access to the original text of every file referenced by spans."""

  @abstractmethod
  def read(self, file: str) -> bytes:
    """
    Returns the original bytes of `file`.

    Raises:
        FileNotFoundError: If the file is unknown.
    """


class InMemorySourceMap(SourceMap):
  """Sources held in memory, keyed by the file names used in spans."""

  def __init__(self, files: Mapping[str, Union[str, bytes]]):
    self._files: Dict[str, bytes] = {
      name: text.encode("utf-8") if isinstance(text, str) else text for name, text in files.items()
    }

  def read(self, file: str) -> bytes:
    try:
      return self._files[file]
    except KeyError:
      raise FileNotFoundError(file) from None


class FileSourceMap(SourceMap):
  """
  Sources read from disk. Relative span file names resolve against `root`.
  Each file is read at most once.
  """

  def __init__(self, root: Optional[Path] = None):
    self.root = root
    self._cache: Dict[str, bytes] = {}

  def path_of(self, file: str) -> Path:
    path = Path(file)
    if self.root is not None and not path.is_absolute():
      path = self.root / path
    return path

  def read(self, file: str) -> bytes:
    if file not in self._cache:
      self._cache[file] = self.path_of(file).read_bytes()
    return self._cache[file]


# --- Span forest ---


class SpanTree:
  """A rewrite together with the rewrites nested inside its span."""

  def __init__(self, span: Span, node: RewriteNode):
    self.span = span
    self.node = node
    self.children: List["SpanTree"] = []
    self.emitted = False


def build_span_forest(entries: Sequence[Tuple[Span, RewriteNode]], size: int) -> List[SpanTree]:
  """
  Arranges one file's rewrites by nesting.

  Args:
      entries: `(span, node)` pairs sorted by `Span.sort_key`.
      size: Length of the file in bytes.

  Returns:
      List[SpanTree]: Top-level rewrites, in source order.

  Raises:
      SpanBoundsError: If a span extends past the end of the file.
      SpanCollisionError: If two spans overlap without one containing the other.
  """
  roots: List[SpanTree] = []
  stack: List[SpanTree] = []
  for span, node in entries:
    if span.hi > size:
      raise SpanBoundsError(f"Span ends past end of file ({size} bytes)", span=span, node=node)
    while stack and not stack[-1].span.contains(span):
      if stack[-1].span.overlaps(span):
        raise SpanCollisionError(f"Span overlaps {stack[-1].span} without nesting", span=span, node=node)
      stack.pop()

    tree = SpanTree(span, node)
    (stack[-1].children if stack else roots).append(tree)
    stack.append(tree)
  return roots


# --- Emission ---


class SourceSink(Sink):
  """Supplies original text for one rewrite while it is being rendered."""

  def __init__(self, emitter: "_FileEmitter", tree: SpanTree):
    self.emitter = emitter
    self.tree = tree
    self.parenthesize_exprs = emitter.parenthesize_exprs

  def emit_expr(self) -> str:
    return self.emitter.region(self.tree.span.lo, self.tree.span.hi, self.tree.children)

  def emit_sub(self, index: int, span: Optional[Span]) -> str:
    if span is None:
      raise MalformedRewriteError(f"Sub({index}) was never resolved to a span", span=self.tree.span, node=self.tree.node)
    self.emitter.check_span(span)
    nested = []
    for child in self.tree.children:
      if span.contains(child.span):
        nested.append(child)
      elif span.overlaps(child.span):
        raise SpanCollisionError(f"Sub({index}) at {span} cuts nested rewrite", span=child.span, node=child.node)
    return self.emitter.region(span.lo, span.hi, nested)

  def emit_span(self, span: Span) -> str:
    self.emitter.check_span(span)
    return self.emitter.text(span.lo, span.hi)


class _FileEmitter:
  """Emission state for one file."""

  def __init__(self, file: str, src: bytes, parenthesize_exprs: bool, strict_nesting: bool):
    self.file = file
    self.src = src
    self.parenthesize_exprs = parenthesize_exprs
    self.strict_nesting = strict_nesting

  def check_span(self, span: Span) -> None:
    if span.file != self.file:
      raise SpanBoundsError(f"Span belongs to {span.file}, not {self.file}", span=span)
    if span.hi > len(self.src):
      raise SpanBoundsError(f"Span ends past end of file ({len(self.src)} bytes)", span=span)

  def text(self, lo: int, hi: int) -> str:
    try:
      return self.src[lo:hi].decode("utf-8")
    except UnicodeDecodeError as e:
      raise SpanBoundsError(
        f"Range splits a UTF-8 sequence: {e.reason}", span=Span(file=self.file, lo=lo, hi=hi)
      ) from e

  def region(self, lo: int, hi: int, trees: Iterable[SpanTree]) -> str:
    """Original text of `[lo, hi)` with the given (contained) rewrites spliced in."""
    out: List[str] = []
    pos = lo
    for tree in trees:
      out.append(self.text(pos, tree.span.lo))
      out.append(self.render(tree))
      pos = tree.span.hi
    out.append(self.text(pos, hi))
    return "".join(out)

  def render(self, tree: SpanTree) -> str:
    tree.emitted = True
    text = Renderer(SourceSink(self, tree)).render(tree.node)
    for child in tree.children:
      if not child.emitted:
        self._discard(tree, child)
    return text

  def _discard(self, parent: SpanTree, child: SpanTree) -> None:
    message = f"Rewrite at {child.span} is nested in {parent.span}, whose rewrite {parent.node} never emits it"
    if self.strict_nesting:
      raise SpanCollisionError(message, span=child.span, node=child.node)
    log_warning(f"Discarding nested rewrite: {message}")
    get_tracer().log_warning(message)


class Applier:
  """
  Applies rewrite outputs to original sources.

  Args:
      sources: Access to original file contents.
      parenthesize_exprs: Parenthesize original expression text placed in
          operator positions (see `Sink.parenthesize_exprs`).
      strict_nesting: Treat a nested rewrite that its parent never emits as a
          consistency fault instead of discarding it with a warning.
  """

  def __init__(self, sources: SourceMap, parenthesize_exprs: bool = True, strict_nesting: bool = False):
    self.sources = sources
    self.parenthesize_exprs = parenthesize_exprs
    self.strict_nesting = strict_nesting

  def apply_file(self, file: str, entries: Sequence[Tuple[Span, RewriteNode]]) -> str:
    """
    Rewrites one file.

    Args:
        file: File name as used in spans.
        entries: Rewrites located in `file`.

    Returns:
        str: The complete new text of the file.

    Raises:
        RewriteConsistencyError: On overlapping, misplaced or out-of-bounds spans.
        MalformedRewriteError: On a rewrite tree the splice cannot honour.
        OSError: If the source cannot be read.
    """
    src = self.sources.read(file)
    ordered = sorted(entries, key=lambda item: item[0].sort_key())
    for span, node in ordered:
      if span.file != file:
        raise SpanBoundsError(f"Span belongs to {span.file}, not {file}", span=span, node=node)
    forest = build_span_forest(ordered, len(src))

    emitter = _FileEmitter(file, src, self.parenthesize_exprs, self.strict_nesting)
    text = emitter.region(0, len(src), forest)
    get_tracer().log_file(file, len(ordered))
    return text

  def apply(self, output: RewriteOutput, files: Optional[Iterable[str]] = None) -> Dict[str, str]:
    """
    Rewrites every file touched by `output`, plus any extra `files`.

    Returns:
        Dict[str, str]: New contents keyed by file name.
    """
    names = list(dict.fromkeys([*output.files(), *(files or ())]))
    return {name: self.apply_file(name, output.for_file(name)) for name in names}


def apply_rewrites(output: RewriteOutput, sources: SourceMap, parenthesize_exprs: bool = True) -> Dict[str, str]:
  return Applier(sources, parenthesize_exprs=parenthesize_exprs).apply(output)


def dump_rewritten_source(name: str, text: str, omit_check_directives: bool = True) -> str:
  """
  Formats rewritten file contents for debug output.

  FileCheck directives are replaced by a marker so that a directive never
  matches its own echoed text.

  Args:
      name: File name for the banner.
      text: New file contents.
      omit_check_directives: Replace `// CHECK...` comments.

  Returns:
      str: The banner-delimited dump.
  """
  lines = [f"\n\n ===== BEGIN {name!r} ====="]
  for line in text.splitlines():
    if omit_check_directives and CHECK_DIRECTIVE in line:
      pre, _ = line.split(CHECK_DIRECTIVE, 1)
      line = f"{pre}// (FileCheck directive omitted)"
    lines.append(line)
  lines.append(f" ===== END {name!r} =====")
  return "\n".join(lines) + "\n"

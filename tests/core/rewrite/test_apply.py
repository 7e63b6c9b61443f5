"""
Tests for Rewrite Application.

Verifies:
1. Empty output reproduces the original text byte for byte.
2. Top-level splicing, nested rewrites and `Sub` substitution.
3. Consistency faults are raised before any text is produced.
4. Debug dump formatting.
"""

import pytest

from rust_rewriter.core.rewrite.apply import (
  Applier,
  FileSourceMap,
  InMemorySourceMap,
  apply_rewrites,
  build_span_forest,
  dump_rewritten_source,
)
from rust_rewriter.core.rewrite.errors import MalformedRewriteError, SpanBoundsError, SpanCollisionError
from rust_rewriter.core.rewrite.model import Span
from rust_rewriter.core.rewrite.nodes import Call, Cast, Identity, MethodCall, Ref, Sub, Text
from rust_rewriter.core.rewrite.output import RewriteOutput
from rust_rewriter.core.tracer import TraceEventType, get_tracer

SRC = """fn f(p: *mut i32, n: isize) {
    let q = p.offset(n);
    g(q);
}
"""


def _apply(text, entries, **kwargs):
  return Applier(InMemorySourceMap({"lib.rs": text}), **kwargs).apply_file("lib.rs", entries)


def test_no_rewrites_round_trips():
  text = "fn main() {\n    let héllo = \"wörld\";\n}\n"
  assert _apply(text, []) == text


def test_apply_emits_extra_files_verbatim():
  files = Applier(InMemorySourceMap({"a.rs": "A", "b.rs": "B"})).apply(RewriteOutput(), files=["b.rs"])
  assert files == {"b.rs": "B"}


def test_top_level_splices_keep_other_text(span_of):
  entries = [
    (span_of(SRC, "g(q)"), Text("h(q)")),
    (span_of(SRC, "n", nth=2), Cast(Identity(), "isize")),
  ]
  out = _apply(SRC, entries)
  assert out == SRC.replace("offset(n)", "offset((n) as isize)").replace("g(q)", "h(q)")


def test_identity_is_not_parenthesized_at_statement_level(span_of):
  out = _apply(SRC, [(span_of(SRC, "g(q)"), Identity())])
  assert out == SRC


def test_parens_can_be_disabled(span_of):
  out = _apply(SRC, [(span_of(SRC, "n", nth=2), Cast(Identity(), "isize"))], parenthesize_exprs=False)
  assert "p.offset(n as isize)" in out


def test_sub_substitutes_child_text(span_of):
  call = span_of(SRC, "p.offset(n)")
  receiver = span_of(SRC, "p", nth=1)
  arg = span_of(SRC, "n", nth=2)
  node = Call("core::ptr::add", (Sub(0, receiver), Cast(Sub(1, arg), "usize")))
  out = _apply(SRC, [(call, node)])
  assert "let q = core::ptr::add(p, (n) as usize);" in out


def test_nested_rewrite_is_emitted_through_parent_identity(span_of):
  outer = span_of(SRC, "g(q)")
  inner = span_of(SRC, "q", nth=1)
  out = _apply(SRC, [(outer, Ref(Identity())), (inner, MethodCall("get", Identity()))])
  assert "&(g((q).get()));" in out


def test_nested_rewrite_is_emitted_through_parent_sub(span_of):
  call = span_of(SRC, "p.offset(n)")
  receiver = span_of(SRC, "p", nth=1)
  out = _apply(SRC, [(call, Call("wrap", (Sub(0, receiver),))), (receiver, Ref(Identity()))])
  assert "let q = wrap(&(p));" in out


def test_unreferenced_nested_rewrite_is_discarded_with_warning(span_of):
  outer = span_of(SRC, "g(q)")
  inner = span_of(SRC, "q", nth=1)
  out = _apply(SRC, [(outer, Text("h()")), (inner, Ref(Identity()))])
  assert "h();" in out
  warnings = get_tracer().events(TraceEventType.WARNING)
  assert len(warnings) == 1


def test_unreferenced_nested_rewrite_fails_when_strict(span_of):
  outer = span_of(SRC, "g(q)")
  inner = span_of(SRC, "q", nth=1)
  with pytest.raises(SpanCollisionError):
    _apply(SRC, [(outer, Text("h()")), (inner, Ref(Identity()))], strict_nesting=True)


def test_partial_overlap_is_rejected(span_of):
  a = Span(file="lib.rs", lo=10, hi=20)
  b = Span(file="lib.rs", lo=15, hi=25)
  with pytest.raises(SpanCollisionError):
    _apply(SRC, [(a, Text("x")), (b, Text("y"))])


def test_sub_cutting_nested_rewrite_is_rejected(span_of):
  call = span_of(SRC, "p.offset(n)")
  nested = span_of(SRC, "p.offset")
  receiver = span_of(SRC, "p", nth=1)
  cut = Span(file="lib.rs", lo=receiver.lo, hi=receiver.lo + 3)
  with pytest.raises(SpanCollisionError):
    _apply(SRC, [(call, Call("wrap", (Sub(0, cut),))), (nested, Text("z"))])


def test_span_past_end_of_file():
  with pytest.raises(SpanBoundsError):
    _apply("abc", [(Span(file="lib.rs", lo=1, hi=9), Text("x"))])


def test_span_of_another_file():
  with pytest.raises(SpanBoundsError):
    _apply("abc", [(Span(file="other.rs", lo=0, hi=1), Text("x"))])


def test_span_splitting_utf8_sequence():
  with pytest.raises(SpanBoundsError, match="UTF-8"):
    _apply("é", [(Span(file="lib.rs", lo=1, hi=2), Text("x"))])


def test_unresolved_sub_is_malformed():
  with pytest.raises(MalformedRewriteError):
    _apply("abc", [(Span(file="lib.rs", lo=0, hi=3), Sub(0))])


def test_zero_length_insertion():
  text = "struct S;\n"
  out = _apply(text, [(Span(file="lib.rs", lo=8, hi=8), Text("<'a>"))])
  assert out == "struct S<'a>;\n"


def test_insertion_at_end_of_rewritten_span_stays_top_level():
  text = "abc"
  entries = [(Span(file="lib.rs", lo=0, hi=3), Text("X")), (Span(file="lib.rs", lo=3, hi=3), Text("!"))]
  assert _apply(text, entries) == "X!"


def test_build_span_forest_nesting():
  outer = Span(file="a.rs", lo=0, hi=10)
  inner = Span(file="a.rs", lo=2, hi=4)
  sibling = Span(file="a.rs", lo=10, hi=12)
  forest = build_span_forest([(outer, Identity()), (inner, Identity()), (sibling, Identity())], 12)
  assert [t.span for t in forest] == [outer, sibling]
  assert [t.span for t in forest[0].children] == [inner]


def test_file_source_map_reads_relative_to_root(tmp_path):
  (tmp_path / "src").mkdir()
  (tmp_path / "src" / "lib.rs").write_text("let x = y;", encoding="utf-8")
  out = RewriteOutput([(Span(file="src/lib.rs", lo=8, hi=9), Ref(Identity()))])
  files = apply_rewrites(out, FileSourceMap(tmp_path))
  assert files == {"src/lib.rs": "let x = &(y);"}


def test_unknown_file_in_memory():
  with pytest.raises(FileNotFoundError):
    InMemorySourceMap({}).read("missing.rs")


def test_dump_rewritten_source_masks_check_directives():
  text = "fn f() {\n    // CHECK: let x\n    x\n}"
  dump = dump_rewritten_source("f.rs", text)
  assert dump == (
    "\n\n ===== BEGIN 'f.rs' =====\n"
    "fn f() {\n"
    "    // (FileCheck directive omitted)\n"
    "    x\n"
    "}\n"
    " ===== END 'f.rs' =====\n"
  )


def test_dump_rewritten_source_can_keep_directives():
  dump = dump_rewritten_source("f.rs", "// CHECK-LABEL: fn f", omit_check_directives=False)
  assert "// CHECK-LABEL: fn f" in dump

"""
End-to-end rewriting of a function whose raw pointer parameter was
reclassified as a `Cell` reference.

`x` becomes `&Cell<i32>` while `f.y` stays a raw pointer, so the store
`f.y = x` needs an address extraction and the load `x = f.y` needs a
re-wrap as a `Cell` reference. Every other statement is left verbatim.
"""

from rust_rewriter.core.rewrite.apply import Applier, InMemorySourceMap
from rust_rewriter.core.rewrite.distribute import distribute
from rust_rewriter.core.rewrite.model import CellAsPtr, EditRequest, RawToCell, Span
from rust_rewriter.core.rewrite.types import (
  AdtParamsRequest,
  TypeDesc,
  TypeRewriteRequest,
  gen_adt_params_rewrites,
  gen_ty_rewrites,
)
from rust_rewriter.core.rewrite.unlower import SurfaceExpr, UnloweringTable

SRC = """#[repr(C)]
pub struct Foo {
    y: *mut i32,
}

pub unsafe fn cell_as_mut_as_cell(mut x: *mut i32, mut f: Foo) {
    let z = x;
    let r = x;
    *z = 1;
    *r = 1;
    *z = 4;
    f.y = x;
    x = f.y;
}
"""

EXPECTED = """#[repr(C)]
pub struct Foo {
    y: *mut i32,
}

pub unsafe fn cell_as_mut_as_cell<'h0>(mut x: &'h0 core::cell::Cell<i32>, mut f: Foo) {
    let z = x;
    let r = x;
    *z = 1;
    *r = 1;
    *z = 4;
    f.y = (x).as_ptr();
    x = &*((f.y) as *const std::cell::Cell<i32>);
}
"""


def _expr(expr_id, span):
  return SurfaceExpr(expr_id=expr_id, span=span)


def test_cell_store_and_load(span_of, loc):
  store = _expr("store", span_of(SRC, "f.y = x"))
  store_rhs = _expr("store.rhs", Span(file="lib.rs", lo=store.span.hi - 1, hi=store.span.hi))
  load = _expr("load", span_of(SRC, "x = f.y"))
  load_rhs = _expr("load.rhs", span_of(SRC, "f.y", nth=1))

  table = UnloweringTable(
    [
      (loc(6), [store, store_rhs]),
      (loc(7), [load, load_rhs]),
    ]
  )
  requests = [
    EditRequest(location=loc(6), transformation=CellAsPtr()),
    EditRequest(location=loc(7), transformation=RawToCell(pointee="i32")),
    # Compiler-introduced temporaries have no surface owner.
    EditRequest(location=loc(2, block=1), transformation=CellAsPtr()),
  ]

  output, dropped = distribute(table, requests)
  assert len(dropped) == 1

  fn_name = span_of(SRC, "cell_as_mut_as_cell")
  params = Span(file="lib.rs", lo=fn_name.hi, hi=fn_name.hi)
  cell = TypeDesc(
    kind="ref",
    lifetime="'h0",
    inner=TypeDesc(kind="ctor", name="core::cell::Cell", args=[TypeDesc(kind="print", text="i32")]),
  )
  output.merge(gen_adt_params_rewrites([AdtParamsRequest(span=params, lifetimes=["'h0"])]))
  output.merge(gen_ty_rewrites([TypeRewriteRequest(span=span_of(SRC, "*mut i32", nth=1), ty=cell)]))

  files = Applier(InMemorySourceMap({"lib.rs": SRC})).apply(output)
  assert files["lib.rs"] == EXPECTED


def test_previews_use_placeholders(span_of, loc):
  rhs = _expr("rhs", span_of(SRC, "f.y", nth=1))
  table = UnloweringTable([(loc(7), [rhs])])
  output, _ = distribute(table, [EditRequest(location=loc(7), transformation=RawToCell(pointee="i32"))])
  assert str(output.get(rhs.span)) == "&*($e as *const std::cell::Cell<i32>)"

"""
Tests for Transformation Conversion.

Each transformation wraps the node built so far; the fold starts from
`Identity` for expressions and from an explicit base for shims.
"""

import pytest

from rust_rewriter.enums import Mutability
from rust_rewriter.core.rewrite.convert import ConversionContext, apply_transformation, convert_transformations
from rust_rewriter.core.rewrite.errors import IrreconcilableEditError
from rust_rewriter.core.rewrite.model import (
  Borrow,
  CastTo,
  CellAsPtr,
  CellGet,
  Dereference,
  OffsetSlice,
  RawToCell,
  RawToRef,
  RemoveCast,
  Span,
  TakeAddress,
)
from rust_rewriter.core.rewrite.nodes import Block, Cast, FnArg, Identity, MethodCall, RemovedCast, Sub
from rust_rewriter.core.rewrite.render import preview

CHILD0 = Span(file="a.rs", lo=0, hi=1)
CHILD1 = Span(file="a.rs", lo=9, hi=10)
CTX = ConversionContext(Span(file="a.rs", lo=0, hi=11), (CHILD0, CHILD1))


@pytest.mark.parametrize(
  "transformation, expected",
  [
    (CastTo(ty="usize"), "$e as usize"),
    (Borrow(mutability=Mutability.MUT), "&mut $e"),
    (TakeAddress(), "core::ptr::addr_of!($e)"),
    (Dereference(), "*$e"),
    (RawToRef(), "&*$e"),
    (RawToRef(mutability=Mutability.MUT), "&mut *$e"),
    (CellAsPtr(), "$e.as_ptr()"),
    (CellGet(), "$e.get()"),
    (RawToCell(pointee="i32"), "&*($e as *const std::cell::Cell<i32>)"),
    (RemoveCast(), "$0"),
    (OffsetSlice(), "{ let (arr, idx) = ($0, $1); &arr[idx as usize..] }"),
    (OffsetSlice(mutability=Mutability.MUT), "{ let (arr, idx) = ($0, $1); &mut arr[idx as usize..] }"),
  ],
)
def test_single_transformation(transformation, expected):
  assert preview(convert_transformations([transformation], CTX)) == expected


def test_empty_fold_is_identity():
  assert convert_transformations([]) == Identity()


def test_fold_applies_in_execution_order():
  node = convert_transformations([CellAsPtr(), CastTo(ty="*const u8")], CTX)
  assert node == Cast(MethodCall("as_ptr", Identity()), "*const u8")
  assert preview(node) == "$e.as_ptr() as *const u8"


def test_remove_cast_keeps_marker_and_resolves_child():
  node = convert_transformations([RemoveCast(), Borrow()], CTX)
  assert node.inner == RemovedCast(Sub(0, CHILD0))
  assert preview(node) == "&$0"


def test_repeated_remove_cast_keeps_single_marker():
  node = convert_transformations([RemoveCast(), RemoveCast()], CTX)
  assert node == RemovedCast(Sub(0, CHILD0))
  assert preview(node) == "$0"


def test_offset_slice_binds_children_by_position():
  node = convert_transformations([OffsetSlice()], CTX)
  assert isinstance(node, Block)
  bindings = node.stmts[0].bindings
  assert bindings == (("arr", Sub(0, CHILD0)), ("idx", Sub(1, CHILD1)))


def test_wholesale_rewrite_must_come_first():
  with pytest.raises(IrreconcilableEditError):
    convert_transformations([Borrow(), OffsetSlice()], CTX)
  with pytest.raises(IrreconcilableEditError):
    convert_transformations([CellGet(), RemoveCast()], CTX)


def test_missing_child_is_irreconcilable():
  with pytest.raises(IrreconcilableEditError, match="child 1"):
    convert_transformations([OffsetSlice()], ConversionContext(CHILD0, (CHILD0,)))


def test_custom_base():
  node = convert_transformations([RawToRef(mutability=Mutability.MUT)], base=FnArg(0))
  assert node.inner.inner == FnArg(0)


def test_apply_transformation_leaves_input_untouched():
  base = Identity()
  wrapped = apply_transformation(base, Dereference(), CTX)
  assert base == Identity()
  assert wrapped.inner is base

"""
Operator Precedence Table.

Parenthesization is decided from two lookup tables rather than from
conditionals spread over the renderer:

* `NODE_PREC` gives the precedence of the operator each node renders as.
* `OPERAND_PREC` gives, for every `(node class, slot)` pair, the minimum
  precedence a child must have to appear unparenthesized in that slot.

A child is parenthesized iff its precedence is strictly lower than the slot's
requirement. Non-associative positions list `prec + 1` as their requirement,
so an operand of equal precedence is parenthesized there. Slots that are
already delimited (brackets, call arguments, block statements) require
`Prec.NONE`.

Levels follow the Rust reference, loosest first.
"""

from enum import IntEnum
from typing import Dict, Optional, Tuple, Type

from rust_rewriter.core.rewrite.errors import PrecedenceGapError
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


class Prec(IntEnum):
  NONE = 0  # statements, delimited slots
  ASSIGN = 1
  RANGE = 2
  OR = 3
  AND = 4
  COMPARE = 5
  BIT_OR = 6
  BIT_XOR = 7
  BIT_AND = 8
  SHIFT = 9
  ADD = 10
  MUL = 11
  CAST = 12
  PREFIX = 13
  POSTFIX = 14
  ATOM = 15


# `None` marks nodes whose text comes from the original source (or from a
# transparent wrapper); their precedence is decided at render time.
NODE_PREC: Dict[Type[RewriteNode], Optional[Prec]] = {
  Identity: None,
  Sub: None,
  RemovedCast: None,
  Text: Prec.ATOM,
  Extract: Prec.ATOM,
  LitZero: Prec.ATOM,
  Ref: Prec.PREFIX,
  Deref: Prec.PREFIX,
  AddrOf: Prec.ATOM,  # macro invocation
  Cast: Prec.CAST,
  Index: Prec.POSTFIX,
  SliceRange: Prec.POSTFIX,
  Call: Prec.POSTFIX,
  MethodCall: Prec.POSTFIX,
  Block: Prec.ATOM,
  Let: Prec.NONE,
  FnArg: Prec.ATOM,
  Print: Prec.ATOM,
  TyPtr: Prec.PREFIX,
  TyRef: Prec.PREFIX,
  TySlice: Prec.ATOM,
  TyCtor: Prec.ATOM,
  GenericParams: Prec.ATOM,
  StaticMut: Prec.NONE,
  DefineFn: Prec.NONE,
}

OPERAND_PREC: Dict[Tuple[Type[RewriteNode], str], Prec] = {
  (Ref, "inner"): Prec.PREFIX,
  (Deref, "inner"): Prec.PREFIX,
  (AddrOf, "inner"): Prec.NONE,
  (Cast, "inner"): Prec.CAST,  # left associative: `e as T as U`
  (Index, "array"): Prec.POSTFIX,
  (Index, "index"): Prec.NONE,
  (SliceRange, "array"): Prec.POSTFIX,
  (SliceRange, "lo"): Prec.OR,  # tighter than `..`
  (SliceRange, "hi"): Prec.OR,
  (Call, "args"): Prec.NONE,
  (MethodCall, "receiver"): Prec.POSTFIX,
  (MethodCall, "args"): Prec.NONE,
  (Block, "stmts"): Prec.NONE,
  (Block, "tail"): Prec.NONE,
  (Let, "bindings"): Prec.NONE,
  (TyPtr, "inner"): Prec.NONE,
  (TyRef, "inner"): Prec.NONE,
  (TySlice, "inner"): Prec.NONE,
  (TyCtor, "args"): Prec.NONE,
  (GenericParams, "args"): Prec.NONE,
  (DefineFn, "arg_tys"): Prec.NONE,
  (DefineFn, "return_ty"): Prec.NONE,
  (DefineFn, "body"): Prec.NONE,
}


def node_prec(node: RewriteNode) -> Optional[Prec]:
  """
  Precedence of the operator `node` renders as.

  Returns None for original text, whose precedence is unknown, and for
  `RemovedCast`, which renders its inner node in the parent's slot directly.

  Raises:
      PrecedenceGapError: If the node class has no table entry.
  """
  try:
    return NODE_PREC[type(node)]
  except KeyError:
    raise PrecedenceGapError(f"No precedence rule for {type(node).__name__}", node=node) from None


def operand_prec(parent: Type[RewriteNode], slot: str) -> Prec:
  """
  Minimum precedence required of a child of `parent` in `slot`.

  Raises:
      PrecedenceGapError: If the pair has no table entry.
  """
  try:
    return OPERAND_PREC[(parent, slot)]
  except KeyError:
    raise PrecedenceGapError(f"No operand rule for {parent.__name__}.{slot}") from None


def needs_parens(required: Prec, child: RewriteNode) -> bool:
  """
  Decides whether `child` must be parenthesized in a slot requiring `required`.

  Original text (`Identity`, `Sub`) is reported as not needing parentheses here;
  the sink decides for it since only the sink sees the actual text.
  """
  prec = node_prec(child)
  if prec is None:
    return False
  return prec < required

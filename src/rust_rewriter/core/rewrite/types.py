"""
Type Annotation Rewrites.

Builds type-level rewrite nodes from a recursive, already surface-level
description of the desired type (`TypeDesc`). The description is rendered as
given: a reference that was requested is never downgraded to a raw pointer.
"""

from typing import Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rust_rewriter.enums import Mutability
from rust_rewriter.core.rewrite.model import Span
from rust_rewriter.core.rewrite.nodes import (
  Extract,
  GenericParams,
  Print,
  RewriteNode,
  TyCtor,
  TyPtr,
  TyRef,
  TySlice,
)
from rust_rewriter.core.rewrite.output import RewriteOutput

TypeKind = Literal["ptr", "ref", "slice", "ctor", "print", "extract"]


class TypeDesc(BaseModel):
  """
  Desired shape of a type annotation.

  * `ptr` / `ref`: `*const inner`, `&'lifetime mut inner` (uses `inner`,
    `mutability`, `lifetime`),
  * `slice`: `[inner]`,
  * `ctor`: `name<args...>`,
  * `print`: literal `text`,
  * `extract`: original text at `span`.
  """

  model_config = ConfigDict(frozen=True)

  kind: TypeKind
  mutability: Mutability = Mutability.NOT
  lifetime: Optional[str] = None
  inner: Optional["TypeDesc"] = None
  name: Optional[str] = None
  args: List["TypeDesc"] = Field(default_factory=list)
  text: Optional[str] = None
  span: Optional[Span] = None

  @model_validator(mode="after")
  def _check_payload(self) -> "TypeDesc":
    required = {
      "ptr": "inner",
      "ref": "inner",
      "slice": "inner",
      "ctor": "name",
      "print": "text",
      "extract": "span",
    }[self.kind]
    if getattr(self, required) is None:
      raise ValueError(f"Type of kind '{self.kind}' requires '{required}'")
    return self

  def to_node(self) -> RewriteNode:
    if self.kind == "ptr":
      return TyPtr(self.inner.to_node(), self.mutability)
    if self.kind == "ref":
      return TyRef(self.lifetime, self.inner.to_node(), self.mutability)
    if self.kind == "slice":
      return TySlice(self.inner.to_node())
    if self.kind == "ctor":
      return TyCtor(self.name, tuple(arg.to_node() for arg in self.args))
    if self.kind == "print":
      return Print(self.text)
    return Extract(self.span)


class TypeRewriteRequest(BaseModel):
  """Replace the type annotation at `span` with `ty`."""

  model_config = ConfigDict(frozen=True)

  span: Span
  ty: TypeDesc


class AdtParamsRequest(BaseModel):
  """
  Replace (or insert, with an empty span) the generic parameter list of an ADT.
  """

  model_config = ConfigDict(frozen=True)

  span: Span
  lifetimes: List[str]


def gen_ty_rewrites(requests: Iterable[TypeRewriteRequest]) -> RewriteOutput:
  output = RewriteOutput()
  for req in requests:
    output.add(req.span, req.ty.to_node())
  return output


def gen_adt_params_rewrites(requests: Iterable[AdtParamsRequest]) -> RewriteOutput:
  """
  Builds `<'a, 'b>` parameter lists, e.g. for the hypothetical lifetimes the
  analysis added to a struct holding references.
  """
  output = RewriteOutput()
  for req in requests:
    output.add(req.span, GenericParams(tuple(Print(lt) for lt in req.lifetimes)))
  return output

"""
Shim Generation.

When the analysis changes the parameter types of a function that must keep
its external signature (it is used as a function pointer, or called from
code that is not rewritten), a small wrapper with the old signature is
generated. The wrapper converts each argument and forwards to the rewritten
function; selected call sites are redirected to the wrapper.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rust_rewriter.core.rewrite.convert import convert_transformations
from rust_rewriter.core.rewrite.model import Span, Transformation
from rust_rewriter.core.rewrite.nodes import Block, Call, DefineFn, FnArg, RewriteNode, Text
from rust_rewriter.core.rewrite.output import RewriteOutput
from rust_rewriter.core.rewrite.types import TypeDesc


class ShimRequest(BaseModel):
  """
  Attributes:
      fn_name: Path of the rewritten function, called from the shim body.
      shim_name: Name of the generated wrapper.
      arg_tys: The wrapper's (original) parameter types.
      arg_conversions: Per argument, transformations turning the wrapper's
          argument into what the rewritten function expects.
      return_ty: The wrapper's return type, if any.
      return_conversion: Transformations applied to the forwarded call's result.
      insert_span: Empty span where the wrapper definition is inserted,
          normally the start of a blank line after the original function.
      call_spans: Callee path spans of call sites to redirect to the wrapper.
  """

  model_config = ConfigDict(frozen=True)

  fn_name: str
  shim_name: str
  arg_tys: List[TypeDesc] = Field(default_factory=list)
  arg_conversions: List[List[Transformation]] = Field(default_factory=list)
  return_ty: Optional[TypeDesc] = None
  return_conversion: List[Transformation] = Field(default_factory=list)
  insert_span: Span
  call_spans: List[Span] = Field(default_factory=list)

  @model_validator(mode="after")
  def _check_shape(self) -> "ShimRequest":
    if not self.insert_span.is_empty:
      raise ValueError(f"Shim insertion span {self.insert_span} must be empty")
    if len(self.arg_conversions) > len(self.arg_tys):
      raise ValueError("More argument conversions than shim arguments")
    return self

  def conversion_for(self, index: int) -> List[Transformation]:
    if index < len(self.arg_conversions):
      return self.arg_conversions[index]
    return []


def gen_shim_definition_rewrite(req: ShimRequest) -> Tuple[Span, RewriteNode]:
  """
  Builds the wrapper definition, e.g.
  `fn foo_shim(arg0: *mut i32) { foo(&mut *arg0) }`.
  """
  args = [convert_transformations(req.conversion_for(i), base=FnArg(i)) for i in range(len(req.arg_tys))]
  call = convert_transformations(req.return_conversion, base=Call(req.fn_name, tuple(args)))
  node = DefineFn(
    name=req.shim_name,
    arg_tys=tuple(ty.to_node() for ty in req.arg_tys),
    return_ty=req.return_ty.to_node() if req.return_ty is not None else None,
    body=Block((), call),
  )
  return req.insert_span, node


def gen_shim_call_rewrites(req: ShimRequest) -> List[Tuple[Span, RewriteNode]]:
  return [(span, Text(req.shim_name)) for span in req.call_spans]


def gen_shim_rewrites(requests: List[ShimRequest]) -> RewriteOutput:
  output = RewriteOutput()
  for req in requests:
    span, node = gen_shim_definition_rewrite(req)
    output.add(span, node)
    for call_span, call_node in gen_shim_call_rewrites(req):
      output.add(call_span, call_node)
  return output

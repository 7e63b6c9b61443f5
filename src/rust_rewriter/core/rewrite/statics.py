"""
Static Item Rewrites.

Toggles `static` <-> `static mut` on items whose mutability requirement was
changed by the analysis. Inputs are already surface-level, so no distribution
is involved.
"""

from typing import Iterable

from pydantic import BaseModel, ConfigDict, model_validator

from rust_rewriter.enums import Mutability
from rust_rewriter.core.rewrite.model import Span
from rust_rewriter.core.rewrite.nodes import StaticMut
from rust_rewriter.core.rewrite.output import RewriteOutput


class StaticRewriteRequest(BaseModel):
  """
  Attributes:
      item_span: From the `static` keyword up to the end of the item.
      body_span: The part of the item kept verbatim (`NAME: T = init;`).
      mutability: Desired mutability of the static.
  """

  model_config = ConfigDict(frozen=True)

  item_span: Span
  body_span: Span
  mutability: Mutability

  @model_validator(mode="after")
  def _body_inside_item(self) -> "StaticRewriteRequest":
    if not self.item_span.contains(self.body_span):
      raise ValueError(f"Static body {self.body_span} is not inside item {self.item_span}")
    return self


def gen_static_rewrites(requests: Iterable[StaticRewriteRequest]) -> RewriteOutput:
  output = RewriteOutput()
  for req in requests:
    output.add(req.item_span, StaticMut(req.mutability, req.body_span))
  return output

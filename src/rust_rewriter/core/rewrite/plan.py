"""
Rewrite Plan Document.

A `RewritePlan` bundles everything one rewriting run consumes, in a JSON
friendly form: the analysis' edit requests, the unlowering table, and the
surface-level static/type/shim requests of the sibling generators.

Example::

    {
      "edits": [
        {"location": {"function": "f", "block": 0, "statement": 4},
         "transformation": {"kind": "cell_as_ptr"}}
      ],
      "unlowering": [
        {"location": {"function": "f", "block": 0, "statement": 4},
         "exprs": [{"expr_id": "f#17", "span": {"file": "lib.rs", "lo": 120, "hi": 121}}]}
      ]
    }
"""

import json
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field

from rust_rewriter.core.rewrite.model import EditRequest, Location
from rust_rewriter.core.rewrite.shim import ShimRequest
from rust_rewriter.core.rewrite.statics import StaticRewriteRequest
from rust_rewriter.core.rewrite.types import AdtParamsRequest, TypeRewriteRequest
from rust_rewriter.core.rewrite.unlower import SurfaceExpr, UnloweringTable


class UnloweringEntry(BaseModel):
  location: Location
  exprs: List[SurfaceExpr] = Field(default_factory=list)


class RewritePlan(BaseModel):
  """
  Input document of the `apply` and `preview` commands.
  """

  edits: List[EditRequest] = Field(default_factory=list, description="Edit requests in execution order.")
  unlowering: List[UnloweringEntry] = Field(default_factory=list, description="Location -> owning expressions.")
  statics: List[StaticRewriteRequest] = Field(default_factory=list)
  types: List[TypeRewriteRequest] = Field(default_factory=list)
  adt_params: List[AdtParamsRequest] = Field(default_factory=list)
  shims: List[ShimRequest] = Field(default_factory=list)
  files: List[str] = Field(default_factory=list, description="Files to emit even without rewrites.")

  def lookup(self) -> UnloweringTable:
    return UnloweringTable((entry.location, entry.exprs) for entry in self.unlowering)

  @classmethod
  def load(cls, path: Path) -> "RewritePlan":
    """
    Reads a plan from a JSON file.

    Raises:
        pydantic.ValidationError: If the document does not match the schema.
    """
    with open(path, "rt", encoding="utf-8") as f:
      data = json.load(f)
    return cls.model_validate(data)

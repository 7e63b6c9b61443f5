"""
Rewrite Package.

Turns low-level edit requests into source text:

- `model`: Locations, spans, transformations and edit requests.
- `nodes`: The closed set of rewrite node variants.
- `precedence` / `render`: Precedence tables and the text renderer.
- `convert` / `distribute`: Folding transformations per surface expression.
- `statics`, `types`, `shim`: Surface-level sibling generators.
- `apply`: Splicing rendered rewrites into the original files.
"""

from rust_rewriter.core.rewrite.errors import (
  IrreconcilableEditError,
  MalformedRewriteError,
  PrecedenceGapError,
  RewriteConsistencyError,
  RewriteError,
  SpanBoundsError,
  SpanCollisionError,
)
from rust_rewriter.core.rewrite.model import EditRequest, Location, Span, Transformation
from rust_rewriter.core.rewrite.nodes import RewriteNode
from rust_rewriter.core.rewrite.output import RewriteOutput
from rust_rewriter.core.rewrite.render import preview, render
from rust_rewriter.core.rewrite.unlower import SurfaceExpr, UnloweringLookup, UnloweringTable
from rust_rewriter.core.rewrite.distribute import Distributor, distribute
from rust_rewriter.core.rewrite.apply import (
  Applier,
  FileSourceMap,
  InMemorySourceMap,
  SourceMap,
  apply_rewrites,
  dump_rewritten_source,
)
from rust_rewriter.core.rewrite.plan import RewritePlan

__all__ = [
  "Applier",
  "Distributor",
  "EditRequest",
  "FileSourceMap",
  "InMemorySourceMap",
  "IrreconcilableEditError",
  "Location",
  "MalformedRewriteError",
  "PrecedenceGapError",
  "RewriteConsistencyError",
  "RewriteError",
  "RewriteNode",
  "RewriteOutput",
  "RewritePlan",
  "SourceMap",
  "Span",
  "SpanBoundsError",
  "SpanCollisionError",
  "SurfaceExpr",
  "Transformation",
  "UnloweringLookup",
  "UnloweringTable",
  "apply_rewrites",
  "distribute",
  "dump_rewritten_source",
  "preview",
  "render",
]

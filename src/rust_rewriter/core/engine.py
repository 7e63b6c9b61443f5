"""
Orchestration Engine for Source Rewriting.

The `RewriteEngine` drives one rewriting run:

1.  **Distribution**: edit requests are attributed to surface expressions and
    merged into one rewrite per expression (`Distributor`).
2.  **Sibling generators**: static, type and shim rewrites are merged into the
    same output under the one-span-one-node rule.
3.  **Application**: every touched file is rewritten in one pass over its
    original text (`Applier`).

Distribution faults abort the run. A rewrite fault or an unreadable source
while applying one file aborts that file only; it is reported in the result
and the remaining files are still produced.
"""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from rust_rewriter.config import RuntimeConfig
from rust_rewriter.core.failure import FailureContext
from rust_rewriter.core.rewrite.apply import Applier, SourceMap
from rust_rewriter.core.rewrite.distribute import Distributor
from rust_rewriter.core.rewrite.errors import RewriteError
from rust_rewriter.core.rewrite.model import EditRequest
from rust_rewriter.core.rewrite.output import RewriteOutput
from rust_rewriter.core.rewrite.plan import RewritePlan
from rust_rewriter.core.rewrite.shim import gen_shim_rewrites
from rust_rewriter.core.rewrite.statics import gen_static_rewrites
from rust_rewriter.core.rewrite.types import gen_adt_params_rewrites, gen_ty_rewrites
from rust_rewriter.core.rewrite.unlower import UnloweringLookup
from rust_rewriter.core.tracer import get_tracer, reset_tracer
from rust_rewriter.utils.console import log_error, log_warning


class RewriteResult(BaseModel):
  """
  Structured result of a rewriting run.
  """

  files: Dict[str, str] = Field(default_factory=dict, description="New contents of every emitted file.")
  errors: List[str] = Field(default_factory=list, description="Per-file faults, one message each.")
  dropped: List[str] = Field(default_factory=list, description="Locations of unattributable edit requests.")
  success: bool = Field(default=True, description="False if any file could not be emitted.")
  trace_events: List[Dict] = Field(default_factory=list, description="Execution trace log data.")

  @property
  def has_errors(self) -> bool:
    return len(self.errors) > 0


class RewriteEngine:
  """
  Runs distribution and application with one configuration.

  Args:
      config: Runtime configuration (defaults to `RuntimeConfig()`).
      failures: Failure slot receiving per-file faults.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None, failures: Optional[FailureContext] = None):
    self.config = config or RuntimeConfig()
    self.failures = failures or FailureContext(self.config.phase_markers)
    self.dropped: List[EditRequest] = []

  def distribute(self, requests: Iterable[EditRequest], lookup: UnloweringLookup) -> RewriteOutput:
    distributor = Distributor(lookup, get_tracer())
    output = distributor.distribute(requests)
    self.dropped.extend(distributor.dropped)
    return output

  def collect(self, plan: RewritePlan) -> RewriteOutput:
    """
    Builds the complete rewrite output of a plan: distributed expression
    rewrites plus the static, type and shim rewrites.
    """
    output = self.distribute(plan.edits, plan.lookup())

    with get_tracer().phase("generators", "Static, type and shim rewrites"):
      output.merge(gen_static_rewrites(plan.statics))
      output.merge(gen_ty_rewrites(plan.types))
      output.merge(gen_adt_params_rewrites(plan.adt_params))
      output.merge(gen_shim_rewrites(plan.shims))
    return output

  def apply(self, output: RewriteOutput, sources: SourceMap, files: Optional[Iterable[str]] = None) -> RewriteResult:
    """
    Applies `output` file by file; a fault in one file does not stop the others.
    """
    applier = Applier(
      sources,
      parenthesize_exprs=self.config.parenthesize_exprs,
      strict_nesting=self.config.strict_nesting,
    )
    result = RewriteResult(dropped=[str(req.location) for req in self.dropped])

    tracer = get_tracer()
    for name in dict.fromkeys([*output.files(), *(files or ())]):
      with tracer.phase("apply", name):
        try:
          result.files[name] = applier.apply_file(name, output.for_file(name))
        except (RewriteError, OSError) as e:
          self.failures.record(e)
          detail = self.failures.take()
          log_error(f"Cannot rewrite {name}: {detail.to_string_short()}")
          result.errors.append(f"{name}: {e}")
          result.success = False

    if result.dropped:
      log_warning(f"{len(result.dropped)} edit request(s) could not be attributed and were dropped.")
    result.trace_events = tracer.export()
    return result

  def run(
    self,
    requests: Iterable[EditRequest],
    lookup: UnloweringLookup,
    sources: SourceMap,
    extra: Optional[RewriteOutput] = None,
    files: Optional[Iterable[str]] = None,
  ) -> RewriteResult:
    """
    Distributes `requests`, merges `extra` rewrites and applies everything.
    """
    reset_tracer()
    self.dropped = []
    output = self.distribute(requests, lookup)
    if extra is not None:
      output.merge(extra)
    return self.apply(output, sources, files)

  def run_plan(self, plan: RewritePlan, sources: SourceMap) -> RewriteResult:
    reset_tracer()
    self.dropped = []
    return self.apply(self.collect(plan), sources, plan.files)

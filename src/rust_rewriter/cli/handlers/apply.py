"""
Apply Command Handler.

This module implements the logic for the `rust-rewriter apply` command.
It orchestrates:
1. Plan loading and configuration (TOML + CLI overrides).
2. Distribution, sibling generators and application via the Engine.
3. Output writing (printed dump, in place, or mirrored directory).
4. JSON report and summary table.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from rich.table import Table
from rich.text import Text

from rust_rewriter.config import RuntimeConfig
from rust_rewriter.core.engine import RewriteEngine, RewriteResult
from rust_rewriter.core.failure import FailureContext
from rust_rewriter.core.rewrite.apply import FileSourceMap, dump_rewritten_source
from rust_rewriter.core.rewrite.errors import RewriteError
from rust_rewriter.core.rewrite.plan import RewritePlan
from rust_rewriter.enums import OutputMode
from rust_rewriter.utils.console import console, log_error, log_info, log_success, log_warning


def handle_apply(
  plan_path: Path,
  root: Optional[Path] = None,
  output_mode: Optional[OutputMode] = None,
  output_dir: Optional[Path] = None,
  parenthesize_exprs: Optional[bool] = None,
  strict_nesting: Optional[bool] = None,
  settings: Optional[Dict[str, Any]] = None,
  json_report: Optional[Path] = None,
) -> int:
  """
  Handles the 'apply' command execution.

  Args:
      plan_path: Path to the JSON rewrite plan.
      root: Directory that relative span file names resolve against
          (defaults to the plan's directory).
      output_mode: Override for where rewritten files go.
      output_dir: Destination root for directory output.
      parenthesize_exprs: Override for original-text parenthesization.
      strict_nesting: Override for nested rewrite handling.
      settings: Generic `key=value` configuration overrides.
      json_report: Optional path to dump the result as JSON.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  if not plan_path.is_file():
    log_error(f"Plan not found: {plan_path}")
    return 1

  try:
    plan = RewritePlan.load(plan_path)
    config = RuntimeConfig.load(
      parenthesize_exprs=parenthesize_exprs,
      strict_nesting=strict_nesting,
      output_mode=output_mode,
      output_dir=output_dir,
      overrides=settings,
      search_path=plan_path.parent,
    )
  except (ValidationError, ValueError) as e:
    log_error(f"Invalid input: {e}")
    return 1

  sources = FileSourceMap(root or plan_path.parent)
  failures = FailureContext(config.phase_markers)
  engine = RewriteEngine(config=config, failures=failures)

  log_info(f"Applying {len(plan.edits)} edit request(s) from {plan_path}...")
  try:
    result = engine.run_plan(plan, sources)
  except RewriteError as e:
    failures.record(e)
    detail = failures.catch(e)
    log_error(f"Rewriting aborted: {detail.to_string_short()}")
    return 1

  if json_report:
    json_report.parent.mkdir(parents=True, exist_ok=True)
    with open(json_report, "wt", encoding="utf-8") as f:
      json.dump(result.model_dump(mode="json"), f, indent=2)
    log_info(f"Report saved to {json_report}")

  _emit_files(result, config, sources)
  _print_report(result)
  return 0 if result.success else 1


def _emit_files(result: RewriteResult, config: RuntimeConfig, sources: FileSourceMap) -> None:
  """
  Writes (or prints) every successfully rewritten file.

  Args:
      result: Engine result holding the new file contents.
      config: Runtime configuration selecting the destination.
      sources: Source map used to locate the original files.
  """
  for name, text in result.files.items():
    if config.output_mode == OutputMode.PRINT:
      print(dump_rewritten_source(name, text, config.omit_check_directives), end="")
      continue

    if config.output_mode == OutputMode.IN_PLACE:
      dest = sources.path_of(name)
    else:
      rel = Path(name)
      if rel.is_absolute():
        rel = Path(rel.name)
      dest = config.output_dir / rel

    dest.parent.mkdir(parents=True, exist_ok=True)
    with open(dest, "wt", encoding="utf-8") as f:
      f.write(text)
    log_success(f"Rewrote: {name} -> {dest}")


def _print_report(result: RewriteResult) -> None:
  """
  Renders a summary table of per-file failures and dropped edits.

  Args:
      result: Engine result to summarize.
  """
  if result.dropped:
    log_warning(f"Dropped edits at: {', '.join(result.dropped)}")

  if result.success:
    log_success(f"Complete: {len(result.files)} file(s) rewritten.")
    return

  table = Table(title="Rewrite Report")
  table.add_column("File", style="cyan")
  table.add_column("Issue", style="red")

  for error in result.errors:
    name, _, issue = error.partition(": ")
    table.add_row(Text(name), Text(issue or error))

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {len(result.files)} rewritten, {len(result.errors)} failed.")

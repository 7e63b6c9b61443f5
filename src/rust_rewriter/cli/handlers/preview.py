"""CLI handler for the preview command."""

from pathlib import Path

from pydantic import ValidationError
from rich.table import Table
from rich.text import Text

from rust_rewriter.core.engine import RewriteEngine
from rust_rewriter.core.rewrite.errors import RewriteError
from rust_rewriter.core.rewrite.plan import RewritePlan
from rust_rewriter.core.tracer import reset_tracer
from rust_rewriter.utils.console import console, log_error, log_warning


def handle_preview(plan_path: Path) -> int:
  """
  Handles 'preview' command.

  Distributes the plan and lists every rewrite as a placeholder preview
  (`$e`, `$0`, `<span ...>`), without reading or writing source files.
  """
  if not plan_path.is_file():
    log_error(f"Plan not found: {plan_path}")
    return 1

  try:
    plan = RewritePlan.load(plan_path)
  except (ValidationError, ValueError) as e:
    log_error(f"Invalid plan: {e}")
    return 1

  reset_tracer()
  engine = RewriteEngine()
  table = Table(title=f"Rewrites in {plan_path.name}")
  table.add_column("Span", style="magenta")
  table.add_column("Rewrite", style="green")

  try:
    output = engine.collect(plan)
    for file in output.files():
      for span, node in output.for_file(file):
        table.add_row(str(span), Text(str(node)))
  except RewriteError as e:
    log_error(f"Cannot build rewrites: {e}")
    return 1

  console.print(table)
  if engine.dropped:
    log_warning(f"{len(engine.dropped)} edit request(s) have no surface owner.")
  return 0

"""
Main Entry Point for rust-rewriter CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `rust_rewriter.cli.commands`.
"""

import argparse
from pathlib import Path
from typing import List, Optional

from rust_rewriter.config import parse_cli_key_values
from rust_rewriter.enums import OutputMode
from rust_rewriter.cli import commands
from rust_rewriter import __version__


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="rust-rewriter: Apply pointer analysis edits to Rust sources")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: APPLY ---
  cmd_apply = subparsers.add_parser("apply", help="Apply a rewrite plan to the source files")
  cmd_apply.add_argument("plan", type=Path, help="Rewrite plan (JSON)")
  cmd_apply.add_argument(
    "--root",
    type=Path,
    default=None,
    help="Directory that relative span file names resolve against (default: plan directory)",
  )
  destination = cmd_apply.add_mutually_exclusive_group()
  destination.add_argument("--out", type=Path, default=None, help="Write rewritten files under this directory")
  destination.add_argument("--in-place", action="store_true", help="Overwrite the original files")
  cmd_apply.add_argument(
    "--no-parens",
    action="store_true",
    help="Do not parenthesize original expression text in operator positions",
  )
  cmd_apply.add_argument(
    "--strict-nesting",
    action="store_true",
    default=None,
    help="Fail when a nested rewrite is never emitted by its parent (Overrides config)",
  )
  cmd_apply.add_argument(
    "--json-report", type=Path, default=None, help="Dump the result (files, errors, trace) to a JSON file."
  )
  cmd_apply.add_argument(
    "--config",
    nargs="*",
    help="Configuration overrides in key=value format (e.g. omit_check_directives=False)",
  )

  # --- Command: PREVIEW ---
  cmd_prev = subparsers.add_parser("preview", help="Show the rewrites of a plan without touching files")
  cmd_prev.add_argument("plan", type=Path, help="Rewrite plan (JSON)")

  args = parser.parse_args(argv)

  if args.command == "apply":
    try:
      settings = parse_cli_key_values(args.config)
    except ValueError as e:
      parser.error(str(e))

    output_mode = None
    if args.in_place:
      output_mode = OutputMode.IN_PLACE
    elif args.out is not None:
      output_mode = OutputMode.DIRECTORY

    return commands.handle_apply(
      args.plan,
      root=args.root,
      output_mode=output_mode,
      output_dir=args.out,
      parenthesize_exprs=False if args.no_parens else None,
      strict_nesting=args.strict_nesting,
      settings=settings,
      json_report=args.json_report,
    )

  elif args.command == "preview":
    return commands.handle_preview(args.plan)

  return 1

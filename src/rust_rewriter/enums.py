"""
Enumerations for rust-rewriter.

This module defines the small closed vocabularies shared by the edit model,
the renderer and the configuration layer.
"""

from enum import Enum


class Mutability(str, Enum):
  """
  Mutability qualifier of a reference, raw pointer or static item.
  """

  NOT = "not"
  MUT = "mut"

  @property
  def is_mut(self) -> bool:
    return self is Mutability.MUT

  @property
  def ptr_keyword(self) -> str:
    """Keyword used after `*` in raw pointer types (`const` or `mut`)."""
    return "mut" if self.is_mut else "const"

  @property
  def ref_prefix(self) -> str:
    """Prefix used after `&` in references and borrows (`""` or `"mut "`)."""
    return "mut " if self.is_mut else ""


class OutputMode(str, Enum):
  """
  Destination of rewritten file contents produced by the CLI.
  """

  PRINT = "print"  # Dump BEGIN/END blocks to the console
  IN_PLACE = "in_place"
  DIRECTORY = "directory"  # Mirror files under `output_dir`

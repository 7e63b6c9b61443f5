"""
Runtime Configuration Store.

Settings are read from the `[tool.rust_rewriter]` table of the nearest
`pyproject.toml` and overridden by explicit (CLI) arguments.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from rust_rewriter.core.failure import DEFAULT_PHASE_MARKERS
from rust_rewriter.enums import OutputMode

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the rewriting engine.
  """

  parenthesize_exprs: bool = Field(True, description="Parenthesize original text placed in operator positions.")
  strict_nesting: bool = Field(False, description="Fail instead of discarding unreferenced nested rewrites.")
  output_mode: OutputMode = Field(OutputMode.PRINT, description="Where rewritten files go.")
  output_dir: Optional[Path] = Field(None, description="Destination root for OutputMode.DIRECTORY.")
  omit_check_directives: bool = Field(True, description="Mask FileCheck directives in printed dumps.")
  phase_markers: List[str] = Field(
    default_factory=lambda: list(DEFAULT_PHASE_MARKERS),
    description="Module-name substrings used to attribute failures to a phase.",
  )

  @model_validator(mode="after")
  def _check_output(self) -> "RuntimeConfig":
    if self.output_mode == OutputMode.DIRECTORY and self.output_dir is None:
      raise ValueError("output_mode 'directory' requires output_dir")
    return self

  @classmethod
  def load(
    cls,
    parenthesize_exprs: Optional[bool] = None,
    strict_nesting: Optional[bool] = None,
    output_mode: Optional[OutputMode] = None,
    output_dir: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and applies overrides.

    Args:
        parenthesize_exprs (Optional[bool]): Override for expression parenthesization.
        strict_nesting (Optional[bool]): Override for nested rewrite handling.
        output_mode (Optional[OutputMode]): Override for the output destination.
        output_dir (Optional[Path]): Override for the output directory.
        overrides (Optional[Dict]): Generic `key=value` overrides (from `--config`).
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    toml_config, toml_dir = _load_toml_settings(search_path or Path.cwd())
    settings: Dict[str, Any] = {**toml_config, **(overrides or {})}

    if toml_dir is not None and "output_dir" in toml_config and "output_dir" not in (overrides or {}):
      settings["output_dir"] = (toml_dir / Path(toml_config["output_dir"])).resolve()

    explicit = {
      "parenthesize_exprs": parenthesize_exprs,
      "strict_nesting": strict_nesting,
      "output_mode": output_mode,
      "output_dir": output_dir,
    }
    settings.update({key: value for key, value in explicit.items() if value is not None})
    return cls.model_validate(settings)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches `start_path` and its parents for `pyproject.toml`.

  Returns:
      Tuple[Dict, Optional[Path]]: The `[tool.rust_rewriter]` table and the
      directory it was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      with open(toml_path, "rb") as f:
        data = tomllib.load(f)
      return data.get("tool", {}).get("rust_rewriter", {}), parent

  return {}, None


def parse_cli_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
  """
  Parses `key=value` strings into a dictionary.

  Booleans and integers are converted; everything else stays a string.

  Raises:
      ValueError: If an item has no `=`.
  """
  if not items:
    return {}

  config: Dict[str, Any] = {}
  for item in items:
    if "=" not in item:
      raise ValueError(f"Invalid config format: '{item}'. Expected 'key=value'.")

    key, val_str = item.split("=", 1)
    val_str = val_str.strip()
    value: Any = val_str
    if val_str.lower() == "true":
      value = True
    elif val_str.lower() == "false":
      value = False
    else:
      try:
        value = int(val_str)
      except ValueError:
        pass
    config[key.strip()] = value

  return config

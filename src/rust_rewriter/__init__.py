"""
rust-rewriter Package.

Applies the results of a pointer/permission analysis to Rust source code:
low-level edit requests are attributed to the surface expressions they came
from, merged into one rewrite per expression and spliced back into the
original text with correct operator precedence.

Usage
-----

Simple Plan Application
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import rust_rewriter as rr

    plan = rr.RewritePlan.load("plan.json")
    files = rr.rewrite_sources(plan, {"lib.rs": open("lib.rs").read()})
    print(files["lib.rs"])

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from rust_rewriter import RewriteEngine, RuntimeConfig
    from rust_rewriter.core.rewrite import FileSourceMap

    engine = RewriteEngine(RuntimeConfig(strict_nesting=True))
    res = engine.run_plan(plan, FileSourceMap(root))

    if res.success:
        print(res.files)
    else:
        print(f"Errors: {res.errors}")
"""

from typing import Dict, Mapping, Optional, Union

from rust_rewriter.config import RuntimeConfig
from rust_rewriter.core.engine import RewriteEngine, RewriteResult
from rust_rewriter.core.rewrite.apply import InMemorySourceMap
from rust_rewriter.core.rewrite.plan import RewritePlan
from rust_rewriter.enums import Mutability, OutputMode

__version__ = "0.0.1"


def rewrite_sources(
  plan: RewritePlan,
  sources: Mapping[str, Union[str, bytes]],
  config: Optional[RuntimeConfig] = None,
) -> Dict[str, str]:
  """
  Applies a rewrite plan to in-memory sources.

  This is a convenience wrapper around `RewriteEngine.run_plan`.

  Args:
      plan (RewritePlan): Edit requests, unlowering table and surface requests.
      sources (Mapping): Original file contents keyed by the file names used in spans.
      config (RuntimeConfig, optional): Engine settings (defaults to `RuntimeConfig()`).

  Returns:
      Dict[str, str]: New contents of every rewritten file.

  Raises:
      ValueError: If any file could not be rewritten.
  """
  engine = RewriteEngine(config=config)
  result = engine.run_plan(plan, InMemorySourceMap(sources))

  if not result.success:
    error_msg = "\n".join(result.errors)
    raise ValueError(f"Rewriting failed:\n{error_msg}")

  return result.files


__all__ = [
  "Mutability",
  "OutputMode",
  "RewriteEngine",
  "RewritePlan",
  "RewriteResult",
  "RuntimeConfig",
  "rewrite_sources",
  "__version__",
]

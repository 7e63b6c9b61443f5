"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Global tracer and console isolation between tests.
- Small builders for spans, locations and source maps.
"""

import sys
import pytest
from pathlib import Path

# Add src to path so we can import 'rust_rewriter' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from rust_rewriter.core.rewrite.apply import InMemorySourceMap
from rust_rewriter.core.rewrite.model import Location, Span
from rust_rewriter.core.tracer import reset_tracer
from rust_rewriter.utils.console import reset_console


@pytest.fixture(autouse=True)
def isolate_globals():
  """
  Ensures trace events and console redirections do not leak between tests.
  """
  reset_tracer()
  yield
  reset_tracer()
  reset_console()


@pytest.fixture
def span_of():
  """
  Returns a helper locating the n-th occurrence of a snippet in a text:
  `span_of(text, "x", file="a.rs", nth=0) -> Span`.
  """

  def _span_of(text: str, snippet: str, file: str = "lib.rs", nth: int = 0) -> Span:
    raw = text.encode("utf-8")
    needle = snippet.encode("utf-8")
    pos = -1
    for _ in range(nth + 1):
      pos = raw.index(needle, pos + 1)
    return Span(file=file, lo=pos, hi=pos + len(needle))

  return _span_of


@pytest.fixture
def loc():
  """Returns a helper building `Location`s in function `f`."""

  def _loc(statement: int, block: int = 0, function: str = "f") -> Location:
    return Location(function=function, block=block, statement=statement)

  return _loc


@pytest.fixture
def sources():
  """Returns a helper wrapping `{name: text}` in an `InMemorySourceMap`."""
  return lambda files: InMemorySourceMap(files)

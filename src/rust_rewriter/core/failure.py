"""
Failure Details.

Captures what is known about an unrecoverable failure: its message, where it
was raised and the most relevant rewriting phase on the stack. The phase is
found by scanning the traceback, innermost frame first, for module names
containing one of the configured phase markers.

The most recent failure lives in an explicit `FailureContext` passed to the
code that recovers from it. Recording a second failure before the first was
taken logs the old one and replaces it.
"""

import traceback
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel

from rust_rewriter.utils.console import log_warning

DEFAULT_PHASE_MARKERS: List[str] = [
  "rust_rewriter.core.rewrite.distribute",
  "rust_rewriter.core.rewrite.convert",
  "rust_rewriter.core.rewrite.render",
  "rust_rewriter.core.rewrite.apply",
  "rust_rewriter.core.rewrite",
]


class FailureDetail(BaseModel):
  message: str
  loc: Optional[str] = None
  relevant_loc: Optional[str] = None
  trace: Optional[str] = None

  @property
  def has_trace(self) -> bool:
    return self.trace is not None

  def to_string_short(self) -> str:
    return f"{self.relevant_loc or '[unknown]'}: {self.message.strip()}"

  def to_string_full(self) -> str:
    text = f"failure at {self.loc or '[unknown]'}: {self.message}\n"
    if self.trace:
      text += self.trace
    return text


def _dotted(filename: str) -> str:
  return ".".join(Path(filename).with_suffix("").parts)


def guess_relevant_loc(exc: BaseException, markers: Sequence[str] = DEFAULT_PHASE_MARKERS) -> Optional[str]:
  """
  Finds the innermost traceback frame inside a rewriting phase.

  Args:
      exc: The raised exception (with its traceback attached).
      markers: Dotted module-name substrings identifying phases.

  Returns:
      `"function @ file:line"`, or None if no frame matches.
  """
  frames = traceback.extract_tb(exc.__traceback__)
  for frame in reversed(frames):
    module = _dotted(frame.filename)
    if any(marker in module or marker in frame.name for marker in markers):
      return f"{frame.name} @ {frame.filename}:{frame.lineno}"
  return None


def detail_from_exception(exc: BaseException, markers: Sequence[str] = DEFAULT_PHASE_MARKERS) -> FailureDetail:
  frames = traceback.extract_tb(exc.__traceback__)
  loc = f"{frames[-1].filename}:{frames[-1].lineno}" if frames else None
  return FailureDetail(
    message=f"{type(exc).__name__}: {exc}",
    loc=loc,
    relevant_loc=guess_relevant_loc(exc, markers),
    trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
  )


class FailureContext:
  """
  Single-slot store for the most recent failure.

  Args:
      markers: Phase markers used for `relevant_loc`.
  """

  def __init__(self, markers: Sequence[str] = DEFAULT_PHASE_MARKERS):
    self.markers = list(markers)
    self.last: Optional[FailureDetail] = None

  def record(self, exc: BaseException) -> FailureDetail:
    """Captures `exc`, replacing (and logging) any detail not yet taken."""
    detail = detail_from_exception(exc, self.markers)
    if self.last is not None:
      log_warning(f"Discarding old failure detail: {self.last.to_string_short()}")
    self.last = detail
    return detail

  def take(self) -> Optional[FailureDetail]:
    detail, self.last = self.last, None
    return detail

  def catch(self, exc: BaseException) -> FailureDetail:
    """
    Returns the recorded detail, or a minimal one built from `exc` if nothing
    was recorded.
    """
    detail = self.take()
    if detail is None:
      log_warning(f"Missing failure detail; caught {exc!r}")
      detail = FailureDetail(message=str(exc))
    return detail

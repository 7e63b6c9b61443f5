"""
Rewrite Trace Logger.

Records the step-by-step decisions of a rewriting run:
1. Lifecycle phases (distribution, generators, application per file).
2. Attribution of edit requests to surface expressions, and dropped requests.
3. Span merges and emitted files.

The output is a list of plain dicts suitable for JSON serialization.
"""

import time
import uuid
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  EDIT_ATTRIBUTED = "edit_attributed"
  EDIT_DROPPED = "edit_dropped"
  SPAN_MERGED = "span_merged"
  FILE_EMITTED = "file_emitted"
  WARNING = "warning"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Collects trace events. Phases nest; every event records its enclosing phase.
  """

  def __init__(self):
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase and returns its id."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=phase_id,
        type=TraceEventType.PHASE_START,
        timestamp=time.time(),
        description=name,
        parent_id=parent,
        metadata={"detail": description},
      )
    )
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self):
    if not self._active_phases:
      return

    phase_id = self._active_phases.pop()
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=TraceEventType.PHASE_END,
        timestamp=time.time(),
        description="End Phase",
        parent_id=phase_id,
      )
    )

  @contextmanager
  def phase(self, name: str, description: str = "") -> Iterator[str]:
    """
    Wraps a block in a phase; the phase ends even when the block raises.

    Yields:
        str: The phase id.
    """
    phase_id = self.start_phase(name, description)
    try:
      yield phase_id
    finally:
      self.end_phase()

  def log_attribution(self, location: str, expr_id: str, span: str):
    self._log_simple(
      TraceEventType.EDIT_ATTRIBUTED,
      f"{location} -> {expr_id}",
      {"location": location, "expr_id": expr_id, "span": span},
    )

  def log_dropped(self, location: str, reason: str):
    self._log_simple(TraceEventType.EDIT_DROPPED, f"Dropped edit at {location}", {"location": location, "reason": reason})

  def log_merge(self, span: str, before: str, after: str):
    self._log_simple(TraceEventType.SPAN_MERGED, f"Merged rewrites at {span}", {"before": before, "after": after})

  def log_file(self, file: str, rewrites: int):
    self._log_simple(TraceEventType.FILE_EMITTED, f"Emitted {file}", {"file": file, "rewrites": rewrites})

  def log_warning(self, message: str):
    self._log_simple(TraceEventType.WARNING, message, {"level": "warning"})

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]):
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  def events(self, evt_type: Optional[TraceEventType] = None) -> List[TraceEvent]:
    return [e for e in self._events if evt_type is None or e.type == evt_type]

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]


_GLOBAL_TRACER = TraceLogger()


def get_tracer() -> TraceLogger:
  return _GLOBAL_TRACER


def reset_tracer():
  global _GLOBAL_TRACER
  _GLOBAL_TRACER = TraceLogger()

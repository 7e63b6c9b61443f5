"""
Tests for the Tracing System.
"""

import pytest

from rust_rewriter.core.tracer import TraceEventType, TraceLogger, get_tracer, reset_tracer


def test_phase_nesting():
  logger = TraceLogger()

  p1 = logger.start_phase("Parent")
  logger.start_phase("Child")
  logger.end_phase()  # End Child
  logger.end_phase()  # End Parent

  events = logger.export()

  # 4 events: Start P, Start C, End C, End P
  assert len(events) == 4
  assert events[0]["type"] == TraceEventType.PHASE_START
  assert events[1]["parent_id"] == p1
  assert events[3]["parent_id"] == p1
  assert events[2]["type"] == TraceEventType.PHASE_END


def test_end_phase_without_start_is_ignored():
  logger = TraceLogger()
  logger.end_phase()
  assert logger.export() == []


def test_attribution_metadata():
  logger = TraceLogger()
  logger.log_attribution("f@bb0[1]", "e7", "a.rs:3..4")

  events = logger.export()
  assert len(events) == 1
  assert events[0]["type"] == TraceEventType.EDIT_ATTRIBUTED
  assert events[0]["metadata"] == {"location": "f@bb0[1]", "expr_id": "e7", "span": "a.rs:3..4"}


def test_events_filter_by_type():
  logger = TraceLogger()
  logger.log_dropped("f@bb1[0]", "no owner")
  logger.log_file("a.rs", 3)
  logger.log_warning("careful")

  assert [e.description for e in logger.events(TraceEventType.FILE_EMITTED)] == ["Emitted a.rs"]
  assert len(logger.events()) == 3


def test_reset_tracer_replaces_global():
  before = get_tracer()
  before.log_warning("stale")
  reset_tracer()
  assert get_tracer() is not before
  assert get_tracer().export() == []


def test_phase_context_ends_on_error():
  logger = TraceLogger()
  with pytest.raises(RuntimeError):
    with logger.phase("apply", "lib.rs") as phase_id:
      logger.log_file("lib.rs", 1)
      raise RuntimeError("boom")

  events = logger.events()
  assert [e.type for e in events] == [TraceEventType.PHASE_START, TraceEventType.FILE_EMITTED, TraceEventType.PHASE_END]
  assert events[1].parent_id == phase_id
  assert events[2].parent_id == phase_id
  assert events[0].metadata == {"detail": "lib.rs"}

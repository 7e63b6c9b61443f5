"""
Tests for the apply and preview command handlers.

Each test writes a small crate and a JSON plan to a temporary directory and
runs the handler against them.
"""

import json

import pytest
from rich.console import Console

from rust_rewriter.cli.handlers.apply import handle_apply
from rust_rewriter.cli.handlers.preview import handle_preview
from rust_rewriter.enums import OutputMode
from rust_rewriter.utils.console import set_console

SRC = "fn f(p: &Cell<i32>) -> i32 {\n    // CHECK: (p).get()\n    p\n}\n"


def _span(text, snippet, nth=0):
  raw = text.encode("utf-8")
  pos = -1
  for _ in range(nth + 1):
    pos = raw.index(snippet.encode("utf-8"), pos + 1)
  return {"file": "lib.rs", "lo": pos, "hi": pos + len(snippet)}


@pytest.fixture
def crate(tmp_path):
  (tmp_path / "lib.rs").write_text(SRC, encoding="utf-8")
  location = {"function": "f", "block": 0, "statement": 1}
  plan = {
    "edits": [{"location": location, "transformation": {"kind": "cell_get"}}],
    "unlowering": [{"location": location, "exprs": [{"expr_id": "p", "span": _span(SRC, "p", nth=2)}]}],
  }
  plan_path = tmp_path / "plan.json"
  plan_path.write_text(json.dumps(plan), encoding="utf-8")
  return tmp_path, plan_path


REWRITTEN = SRC.replace("    p\n", "    (p).get()\n")


def test_apply_prints_dump(crate, capsys):
  _, plan_path = crate
  assert handle_apply(plan_path) == 0

  out = capsys.readouterr().out
  assert " ===== BEGIN 'lib.rs' =====" in out
  assert "    (p).get()" in out
  assert "// (FileCheck directive omitted)" in out
  assert "// CHECK" not in out


def test_apply_prints_directives_when_asked(crate, capsys):
  _, plan_path = crate
  assert handle_apply(plan_path, settings={"omit_check_directives": False}) == 0
  assert "// CHECK: (p).get()" in capsys.readouterr().out


def test_apply_to_directory(crate, tmp_path):
  root, plan_path = crate
  out_dir = tmp_path / "out"
  assert handle_apply(plan_path, output_mode=OutputMode.DIRECTORY, output_dir=out_dir) == 0

  assert (out_dir / "lib.rs").read_text(encoding="utf-8") == REWRITTEN
  assert (root / "lib.rs").read_text(encoding="utf-8") == SRC


def test_apply_in_place(crate):
  root, plan_path = crate
  assert handle_apply(plan_path, output_mode=OutputMode.IN_PLACE) == 0
  assert (root / "lib.rs").read_text(encoding="utf-8") == REWRITTEN


def test_apply_without_parens(crate, capsys):
  _, plan_path = crate
  assert handle_apply(plan_path, parenthesize_exprs=False) == 0
  assert "    p.get()\n" in capsys.readouterr().out


def test_apply_writes_json_report(crate, tmp_path):
  _, plan_path = crate
  report = tmp_path / "reports" / "result.json"
  assert handle_apply(plan_path, output_mode=OutputMode.IN_PLACE, json_report=report) == 0

  data = json.loads(report.read_text(encoding="utf-8"))
  assert data["success"] is True
  assert data["files"]["lib.rs"] == REWRITTEN
  assert any(event["type"] == "file_emitted" for event in data["trace_events"])


def test_apply_reports_file_failure(crate):
  root, plan_path = crate
  plan = json.loads(plan_path.read_text(encoding="utf-8"))
  plan["types"] = [
    {"span": {"file": "lib.rs", "lo": 0, "hi": 10}, "ty": {"kind": "print", "text": "A"}},
    {"span": {"file": "lib.rs", "lo": 5, "hi": 15}, "ty": {"kind": "print", "text": "B"}},
  ]
  plan_path.write_text(json.dumps(plan), encoding="utf-8")

  capture = Console(record=True, width=200)
  set_console(capture)
  assert handle_apply(plan_path, output_mode=OutputMode.IN_PLACE) == 1

  assert (root / "lib.rs").read_text(encoding="utf-8") == SRC
  assert "Rewrite Report" in capture.export_text()


def test_apply_with_root(tmp_path):
  crate_dir = tmp_path / "crate"
  crate_dir.mkdir()
  (crate_dir / "lib.rs").write_text("x", encoding="utf-8")
  plan_path = tmp_path / "plan.json"
  plan_path.write_text(
    json.dumps({"types": [{"span": {"file": "lib.rs", "lo": 0, "hi": 1}, "ty": {"kind": "print", "text": "y"}}]}),
    encoding="utf-8",
  )
  assert handle_apply(plan_path, root=crate_dir, output_mode=OutputMode.IN_PLACE) == 0
  assert (crate_dir / "lib.rs").read_text(encoding="utf-8") == "y"


def test_apply_missing_plan(tmp_path):
  assert handle_apply(tmp_path / "missing.json") == 1


def test_apply_invalid_plan(tmp_path):
  plan_path = tmp_path / "plan.json"
  plan_path.write_text('{"edits": [{"location": {}}]}', encoding="utf-8")
  assert handle_apply(plan_path) == 1


def test_apply_missing_source(tmp_path):
  plan_path = tmp_path / "plan.json"
  plan_path.write_text(json.dumps({"files": ["nowhere.rs"]}), encoding="utf-8")
  assert handle_apply(plan_path) == 1


def test_preview_lists_rewrites(crate):
  _, plan_path = crate
  capture = Console(record=True, width=200)
  set_console(capture)

  assert handle_preview(plan_path) == 0
  text = capture.export_text()
  assert "lib.rs:" in text
  assert "$e.get()" in text


def test_preview_missing_plan(tmp_path):
  assert handle_preview(tmp_path / "missing.json") == 1

from __future__ import annotations

import json
from pathlib import Path

import pytest

from relkit.platform.github import load_event_payload, write_step_outputs


def test_load_event_payload(tmp_path: Path) -> None:
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"head_commit": {"message": "fix --build"}}), encoding="utf-8")
    payload = load_event_payload({"GITHUB_EVENT_PATH": str(event)})
    assert payload == {"head_commit": {"message": "fix --build"}}


def test_load_event_payload_absent_or_unreadable(tmp_path: Path) -> None:
    assert load_event_payload({}) is None
    assert load_event_payload({"GITHUB_EVENT_PATH": str(tmp_path / "missing.json")}) is None
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert load_event_payload({"GITHUB_EVENT_PATH": str(broken)}) is None


def test_write_step_outputs_appends(tmp_path: Path) -> None:
    out = tmp_path / "output"
    out.write_text("previous=1\n", encoding="utf-8")
    written = write_step_outputs(
        [("should_build", "true"), ("version", "1.2.3")],
        {"GITHUB_OUTPUT": str(out)},
    )
    assert written == out
    assert out.read_text(encoding="utf-8") == "previous=1\nshould_build=true\nversion=1.2.3\n"


def test_write_step_outputs_outside_actions() -> None:
    assert write_step_outputs([("a", "b")], {}) is None


def test_write_step_outputs_rejects_multiline(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="multi-line"):
        write_step_outputs([("notes", "a\nb")], {"GITHUB_OUTPUT": str(tmp_path / "o")})

from __future__ import annotations

from pathlib import Path

import pytest

from relkit.core.result import Err, Ok, Result
from relkit.platform import git as git_mod
from relkit.platform.process import ProcessError


def _fake(
    monkeypatch: pytest.MonkeyPatch, response: Result[str, ProcessError]
) -> list[list[str]]:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], cwd: Path, *, timeout: float | None = None):
        del cwd, timeout
        calls.append(cmd)
        return response

    monkeypatch.setattr(git_mod, "run_process", fake_run)
    return calls


def test_short_hash(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _fake(monkeypatch, Ok("abcdef1\n"))
    result = git_mod.short_hash(tmp_path)
    assert isinstance(result, Ok)
    assert result.value == "abcdef1"
    assert calls == [["git", "rev-parse", "--short", "HEAD"]]


def test_tag_message(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _fake(monkeypatch, Ok("First stable release\n\nHighlights...\n"))
    assert git_mod.tag_message(tmp_path, "1.0.0") == "First stable release\n\nHighlights..."


def test_tag_message_blank_or_failed(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _fake(monkeypatch, Ok("  \n"))
    assert git_mod.tag_message(tmp_path, "1.0.0") is None

    _fake(monkeypatch, Err(ProcessError(("git",), 128, "", "fatal")))
    assert git_mod.tag_message(tmp_path, "1.0.0") is None

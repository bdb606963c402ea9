"""Tests for relkit.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from relkit.core.result import Err, Ok
from relkit.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "status"), returncode=1, stdout="", stderr="fatal")
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("gh", "release", "upload", "1.2.3", "a.zip"),
            returncode=1,
            stdout="",
            stderr="error",
        )
        assert str(error) == "gh release upload ... failed (exit 1)"

    def test_timed_out(self) -> None:
        assert ProcessError(("gh",), -1, "", "Command timed out after 1s").timed_out
        assert not ProcessError(("gh",), 1, "", "timed out").timed_out

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
            cwd=tmp_path,
        )
        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert "bad" in result.error.stderr

    def test_missing_binary(self, tmp_path: Path) -> None:
        result = run(["relkit-definitely-not-a-binary"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)
        assert isinstance(result, Err)
        assert result.error.timed_out

    def test_extra_env_is_layered(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import os; print(os.environ['RELKIT_TEST_VALUE'])"],
            cwd=tmp_path,
            extra_env={"RELKIT_TEST_VALUE": "secret"},
        )
        assert isinstance(result, Ok)
        assert result.value.strip() == "secret"

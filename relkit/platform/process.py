"""Subprocess execution with Result-based error handling.

All external CLIs (git, gh, ossutil) go through ``run`` so that adapters can
be swapped for fakes by monkeypatching a single name.

Usage:
    result = run(["gh", "release", "view", "1.2.3"], cwd=root, timeout=60.0)
    match result:
        case Ok(stdout):
            ...
        case Err(error):
            print(error.stderr)
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from relkit.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 when the process could not run or timed out.
        stdout: Standard output (may be empty).
        stderr: Standard error, or a description of the failure.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def timed_out(self) -> bool:
        return self.returncode == -1 and "timed out" in self.stderr

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def _failed(cmd: list[str], returncode: int, stdout: str, stderr: str) -> Err[ProcessError]:
    error = ProcessError(command=tuple(cmd), returncode=returncode, stdout=stdout, stderr=stderr)
    return Err(error)


def run(
    cmd: list[str],
    cwd: Path,
    *,
    extra_env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its stdout.

    Args:
        cmd: Command and arguments.
        cwd: Working directory.
        extra_env: Variables layered on top of the current environment
            (credentials are passed this way, never on the command line).
        timeout: Maximum seconds to wait (None for no limit).
    """
    env: dict[str, str] | None = None
    if extra_env:
        env = {**os.environ, **extra_env}

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return _failed(cmd, -1, partial, f"Command timed out after {timeout}s")
    except OSError as e:
        return _failed(cmd, -1, "", str(e))

    if proc.returncode != 0:
        return _failed(cmd, proc.returncode, proc.stdout, proc.stderr)

    return Ok(proc.stdout)

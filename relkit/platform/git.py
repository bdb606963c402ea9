"""Read-only git queries used by the pipeline."""

from __future__ import annotations

from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.platform.process import ProcessError
from relkit.platform.process import run as run_process

__all__ = ["short_hash", "tag_message"]

GIT_TIMEOUT_SECONDS = 30.0


def short_hash(repo_root: Path) -> Result[str, ProcessError]:
    result = run_process(
        ["git", "rev-parse", "--short", "HEAD"], cwd=repo_root, timeout=GIT_TIMEOUT_SECONDS
    )
    if isinstance(result, Err):
        return result
    return Ok(result.value.strip())


def tag_message(repo_root: Path, tag: str) -> str | None:
    """Annotation message of a tag, or None if blank, lightweight, or unknown."""
    result = run_process(
        ["git", "tag", "-l", "--format=%(contents)", tag],
        cwd=repo_root,
        timeout=GIT_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return None
    text = result.value.strip()
    return text or None

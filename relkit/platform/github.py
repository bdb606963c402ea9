"""GitHub Actions runtime integration: event payload and step outputs."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from relkit.core.structured import StrDict, as_str_dict

__all__ = ["load_event_payload", "write_step_outputs"]


def load_event_payload(environ: Mapping[str, str] | None = None) -> StrDict | None:
    """Read the JSON event that triggered the workflow, if any.

    A missing or unreadable payload only means the optional fields (commit
    message, manual inputs) are absent.
    """
    env = os.environ if environ is None else environ
    event_path = env.get("GITHUB_EVENT_PATH")
    if not event_path:
        return None
    try:
        obj: object = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    return as_str_dict(obj)


def write_step_outputs(
    items: Iterable[tuple[str, str]],
    environ: Mapping[str, str] | None = None,
) -> Path | None:
    """Append ``key=value`` lines to ``$GITHUB_OUTPUT``.

    Returns the output file, or None when not running under Actions.
    """
    env = os.environ if environ is None else environ
    output = env.get("GITHUB_OUTPUT")
    if not output:
        return None
    path = Path(output)
    with path.open("a", encoding="utf-8") as f:
        for key, value in items:
            if "\n" in value:
                raise ValueError(f"multi-line step output not supported: {key}")
            f.write(f"{key}={value}\n")
    return path

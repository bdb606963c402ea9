from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "gh_missing",
    "release_exists",
    "not_found",
    "invalid_response",
    "create_failed",
    "upload_failed",
    "publish_failed",
    "empty_aggregate",
    "manifest_failed",
    "invalid_input",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

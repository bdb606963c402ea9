"""External "latest stable version" pointer record.

The record is a small JSON document overwritten on every stable release;
it keeps no history.
"""

from __future__ import annotations

import json
import tempfile
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from relkit.build.classify import BuildClassification, BuildType
from relkit.core.result import Err, Ok, Result
from relkit.output.console import ConsoleProtocol
from relkit.platform.files import atomic_write_text
from relkit.services.storage import ObjectStorage, StorageError

__all__ = [
    "LatestPointerRecord",
    "LatestUpdate",
    "build_latest_record",
    "update_latest_pointer",
]

LatestUpdate = Literal["updated", "skipped_prerelease", "skipped_no_credentials"]


@dataclass(frozen=True, slots=True)
class LatestPointerRecord:
    version: str
    tag: str
    release_date: str
    release_type: Literal["stable"]
    download_url: str

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2) + "\n"


def build_latest_record(
    classification: BuildClassification,
    *,
    repository: str,
    now: datetime | None = None,
) -> LatestPointerRecord:
    stamp = (now or datetime.now(UTC)).astimezone(UTC)
    tag = classification.version
    return LatestPointerRecord(
        version=classification.version,
        tag=tag,
        release_date=stamp.strftime("%Y-%m-%dT%H:%M:%SZ"),
        release_type="stable",
        download_url=f"https://github.com/{repository}/releases/tag/{tag}",
    )


def update_latest_pointer(
    classification: BuildClassification,
    *,
    storage: ObjectStorage | None,
    destination: str,
    repository: str,
    console: ConsoleProtocol,
    now: datetime | None = None,
) -> Result[LatestUpdate, StorageError]:
    """Overwrite the latest record for a stable release.

    ``storage`` is None when credentials are unavailable; that skips the
    update with a warning rather than failing.
    """
    if classification.build_type is not BuildType.RELEASE:
        return Ok("skipped_prerelease")

    if storage is None:
        console.warning("storage credentials not available, skipping latest.json update")
        return Ok("skipped_no_credentials")

    record = build_latest_record(classification, repository=repository, now=now)
    with tempfile.TemporaryDirectory(prefix="relkit-latest-") as tmp:
        path = Path(tmp) / "latest.json"
        atomic_write_text(path, record.to_json())
        uploaded = storage.upload(path, destination)
    if isinstance(uploaded, Err):
        return uploaded

    console.success(f"updated latest.json for stable release {classification.version}")
    return Ok("updated")

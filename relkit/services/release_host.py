"""Release hosting port and its GitHub (``gh`` CLI) adapter.

Operations are chosen so that every one of them is safe to repeat:
lookup, draft creation (reports ``release_exists`` instead of duplicating),
asset upload (clobbers same-named assets), and publish (no-op when public).
"""

from __future__ import annotations

import json
import shutil
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from time import sleep
from typing import Protocol, runtime_checkable

from relkit.core.result import Err, Ok, Result
from relkit.core.structured import as_obj_list, as_str_dict, get_int, get_str
from relkit.platform.process import ProcessError
from relkit.platform.process import run as run_process
from relkit.services.errors import ReleaseError, ReleaseErrorKind
from relkit.services.timeouts import (
    GH_RETRY_ATTEMPTS,
    GH_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    GH_UPLOAD_TIMEOUT_SECONDS,
)

__all__ = [
    "GhReleaseHost",
    "MemoryReleaseHost",
    "ReleaseHandle",
    "ReleaseHost",
]


@dataclass(frozen=True, slots=True)
class ReleaseHandle:
    tag: str
    release_id: int
    url: str
    draft: bool
    prerelease: bool


@runtime_checkable
class ReleaseHost(Protocol):
    def find(self, tag: str) -> Result[ReleaseHandle | None, ReleaseError]: ...

    def create(
        self, tag: str, *, title: str, notes: str, prerelease: bool
    ) -> Result[ReleaseHandle, ReleaseError]:
        """Create a draft release; Err(kind="release_exists") if the tag has one."""
        ...

    def upload_asset(self, handle: ReleaseHandle, path: Path) -> Result[None, ReleaseError]:
        """Attach path, replacing an existing asset of the same name."""
        ...

    def publish(self, handle: ReleaseHandle) -> Result[ReleaseHandle, ReleaseError]:
        """Clear the draft flag. Publishing a public release is a no-op."""
        ...

    def asset_names(self, handle: ReleaseHandle) -> Result[list[str], ReleaseError]: ...


_TRANSIENT_MARKERS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "tls handshake timeout",
    "network is unreachable",
    "http 429",
    "http 500",
    "http 502",
    "http 503",
    "http 504",
)


def _is_transient(error: ProcessError) -> bool:
    if error.timed_out:
        return True
    text = f"{error.stderr}\n{error.stdout}".lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def _is_not_found(error: ProcessError) -> bool:
    return "release not found" in error.stderr.lower() or "http 404" in error.stderr.lower()


def _parse_handle(payload: str) -> Result[ReleaseHandle, ReleaseError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(ReleaseError(kind="invalid_response", message=f"invalid JSON from gh: {e}"))

    data = as_str_dict(obj)
    if data is None:
        return Err(ReleaseError(kind="invalid_response", message="unexpected gh release payload"))

    tag = get_str(data, "tagName")
    release_id = get_int(data, "databaseId")
    url = get_str(data, "url")
    draft = data.get("isDraft")
    prerelease = data.get("isPrerelease")
    if (
        tag is None
        or release_id is None
        or url is None
        or not isinstance(draft, bool)
        or not isinstance(prerelease, bool)
    ):
        return Err(ReleaseError(kind="invalid_response", message="incomplete gh release payload"))

    return Ok(
        ReleaseHandle(tag=tag, release_id=release_id, url=url, draft=draft, prerelease=prerelease)
    )


class GhReleaseHost:
    """ReleaseHost backed by the GitHub CLI."""

    _VIEW_FIELDS = "databaseId,url,isDraft,isPrerelease,tagName"

    def __init__(
        self,
        *,
        repo: str,
        workdir: Path,
        retry_attempts: int = GH_RETRY_ATTEMPTS,
    ) -> None:
        self._repo = repo
        self._workdir = workdir
        self._retry_attempts = max(1, retry_attempts)

    @staticmethod
    def available() -> Result[None, ReleaseError]:
        if shutil.which("gh") is None:
            return Err(
                ReleaseError(
                    kind="gh_missing",
                    message="gh: missing",
                    hint="Install GitHub CLI: https://cli.github.com/",
                )
            )
        return Ok(None)

    def _run(
        self,
        cmd: list[str],
        *,
        timeout: float = GH_TIMEOUT_SECONDS,
        retry: bool = True,
    ) -> Result[str, ProcessError]:
        attempts = self._retry_attempts if retry else 1
        result = run_process(cmd, cwd=self._workdir, timeout=timeout)
        for attempt in range(1, attempts):
            if isinstance(result, Ok) or not _is_transient(result.error):
                break
            sleep(GH_RETRY_DELAY_SECONDS * attempt)
            result = run_process(cmd, cwd=self._workdir, timeout=timeout)
        return result

    def _error(self, kind: ReleaseErrorKind, message: str, error: ProcessError) -> ReleaseError:
        return ReleaseError(kind=kind, message=message, hint=error.stderr.strip() or str(error))

    def find(self, tag: str) -> Result[ReleaseHandle | None, ReleaseError]:
        result = self._run(
            ["gh", "release", "view", tag, "--repo", self._repo, "--json", self._VIEW_FIELDS]
        )
        if isinstance(result, Err):
            if _is_not_found(result.error):
                return Ok(None)
            return Err(self._error("not_found", f"failed to look up release {tag}", result.error))
        return _parse_handle(result.value)

    def create(
        self, tag: str, *, title: str, notes: str, prerelease: bool
    ) -> Result[ReleaseHandle, ReleaseError]:
        cmd = [
            "gh",
            "release",
            "create",
            tag,
            "--repo",
            self._repo,
            "--title",
            title,
            "--notes",
            notes,
            "--draft",
            "--verify-tag",
        ]
        if prerelease:
            cmd.append("--prerelease")

        # Not retried; a timed-out create may have landed and find() covers it.
        result = self._run(cmd, retry=False)
        if isinstance(result, Err):
            if "already exists" in result.error.stderr.lower():
                return Err(
                    ReleaseError(kind="release_exists", message=f"release {tag} already exists")
                )
            return Err(self._error("create_failed", f"failed to create release {tag}", result.error))

        found = self.find(tag)
        if isinstance(found, Err):
            return found
        if found.value is None:
            return Err(
                ReleaseError(
                    kind="invalid_response",
                    message=f"release {tag} not visible after creation",
                )
            )
        return Ok(found.value)

    def upload_asset(self, handle: ReleaseHandle, path: Path) -> Result[None, ReleaseError]:
        result = self._run(
            ["gh", "release", "upload", handle.tag, str(path), "--repo", self._repo, "--clobber"],
            timeout=GH_UPLOAD_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(self._error("upload_failed", f"failed to upload {path.name}", result.error))
        return Ok(None)

    def publish(self, handle: ReleaseHandle) -> Result[ReleaseHandle, ReleaseError]:
        if not handle.draft:
            return Ok(handle)
        result = self._run(
            ["gh", "release", "edit", handle.tag, "--repo", self._repo, "--draft=false"]
        )
        if isinstance(result, Err):
            return Err(
                self._error("publish_failed", f"failed to publish release {handle.tag}", result.error)
            )
        refreshed = self.find(handle.tag)
        if isinstance(refreshed, Ok) and refreshed.value is not None:
            return Ok(refreshed.value)
        return Ok(replace(handle, draft=False))

    def asset_names(self, handle: ReleaseHandle) -> Result[list[str], ReleaseError]:
        result = self._run(
            ["gh", "release", "view", handle.tag, "--repo", self._repo, "--json", "assets"]
        )
        if isinstance(result, Err):
            return Err(self._error("not_found", f"failed to list assets of {handle.tag}", result.error))

        try:
            obj: object = json.loads(result.value)
        except json.JSONDecodeError as e:
            return Err(ReleaseError(kind="invalid_response", message=f"invalid JSON from gh: {e}"))

        data = as_str_dict(obj)
        raw = as_obj_list(data.get("assets")) if data is not None else None
        if raw is None:
            return Err(ReleaseError(kind="invalid_response", message="unexpected assets payload"))

        names: list[str] = []
        for item in raw:
            asset = as_str_dict(item)
            name = get_str(asset, "name") if asset is not None else None
            if name is not None:
                names.append(name)
        return Ok(names)


@dataclass
class _StoredRelease:
    handle: ReleaseHandle
    title: str
    notes: str
    assets: dict[str, bytes]


class MemoryReleaseHost:
    """In-memory release host for tests and ``--dry-run``.

    ``fail_uploads`` holds asset names whose upload is rejected.
    """

    def __init__(self, *, base_url: str = "https://github.com/example/project") -> None:
        self.releases: dict[str, _StoredRelease] = {}
        self.create_calls: list[str] = []
        self.publish_calls: list[str] = []
        self.fail_uploads: set[str] = set()
        self._base_url = base_url
        self._next_id = 1000
        self._lock = threading.Lock()

    def find(self, tag: str) -> Result[ReleaseHandle | None, ReleaseError]:
        with self._lock:
            stored = self.releases.get(tag)
            return Ok(stored.handle if stored is not None else None)

    def create(
        self, tag: str, *, title: str, notes: str, prerelease: bool
    ) -> Result[ReleaseHandle, ReleaseError]:
        with self._lock:
            self.create_calls.append(tag)
            if tag in self.releases:
                return Err(
                    ReleaseError(kind="release_exists", message=f"release {tag} already exists")
                )
            self._next_id += 1
            handle = ReleaseHandle(
                tag=tag,
                release_id=self._next_id,
                url=f"{self._base_url}/releases/tag/{tag}",
                draft=True,
                prerelease=prerelease,
            )
            self.releases[tag] = _StoredRelease(handle=handle, title=title, notes=notes, assets={})
            return Ok(handle)

    def upload_asset(self, handle: ReleaseHandle, path: Path) -> Result[None, ReleaseError]:
        if path.name in self.fail_uploads:
            return Err(ReleaseError(kind="upload_failed", message=f"failed to upload {path.name}"))
        with self._lock:
            stored = self.releases.get(handle.tag)
            if stored is None:
                return Err(ReleaseError(kind="not_found", message=f"no release {handle.tag}"))
            stored.assets[path.name] = path.read_bytes()
        return Ok(None)

    def publish(self, handle: ReleaseHandle) -> Result[ReleaseHandle, ReleaseError]:
        with self._lock:
            stored = self.releases.get(handle.tag)
            if stored is None:
                return Err(ReleaseError(kind="not_found", message=f"no release {handle.tag}"))
            if stored.handle.draft:
                self.publish_calls.append(handle.tag)
                stored.handle = replace(stored.handle, draft=False)
            return Ok(stored.handle)

    def asset_names(self, handle: ReleaseHandle) -> Result[list[str], ReleaseError]:
        with self._lock:
            stored = self.releases.get(handle.tag)
            if stored is None:
                return Err(ReleaseError(kind="not_found", message=f"no release {handle.tag}"))
            return Ok(sorted(stored.assets))

"""Release lifecycle for tagged builds.

Stages run strictly in order, once every matrix cell has finished:

    aggregate -> create or reuse draft -> checksums -> upload assets
              -> latest pointer -> publish -> verify

Every stage is safe to repeat, so re-running the coordinator for a tag
(retry, re-triggered workflow, concurrent run) converges on one release
with one copy of each asset. There is no rollback: a failure after draft
creation leaves an inspectable draft behind.
"""

from __future__ import annotations

import shutil
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path

from relkit.build.classify import BuildClassification
from relkit.build.naming import PACKAGE_EXT, parse_package_name
from relkit.core.config import PipelineConfig
from relkit.core.result import Err, Ok, Result
from relkit.output.console import ConsoleProtocol, Style
from relkit.services.checksums import (
    ChecksumManifest,
    build_manifest,
    write_manifest,
    write_signature_placeholders,
)
from relkit.services.errors import ReleaseError, ReleaseErrorKind
from relkit.services.latest import LatestUpdate, update_latest_pointer
from relkit.services.matrix import MatrixReport
from relkit.services.notes import release_notes, release_title
from relkit.services.release_host import ReleaseHandle, ReleaseHost
from relkit.services.storage import ObjectStorage

__all__ = [
    "CoordinatorError",
    "CoordinatorReport",
    "ReleaseCoordinator",
    "ReleaseState",
    "aggregate_from_dir",
    "aggregate_from_report",
]


class ReleaseState(StrEnum):
    ABSENT = "absent"
    DRAFT = "draft"
    ASSETS_ATTACHED = "assets_attached"
    PUBLISHED = "published"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CoordinatorError:
    kind: ReleaseErrorKind
    message: str
    last_state: ReleaseState
    hint: str | None = None
    handle: ReleaseHandle | None = None


@dataclass(frozen=True, slots=True)
class CoordinatorReport:
    tag: str
    state: ReleaseState
    handle: ReleaseHandle
    reused: bool
    packages: tuple[str, ...]
    assets: tuple[str, ...]
    manifest: ChecksumManifest
    latest: LatestUpdate | None
    warnings: tuple[str, ...] = ()


def aggregate_from_report(report: MatrixReport) -> list[Path]:
    """Package paths of every cell that published successfully."""
    return [pkg.path for pkg in report.packages]


def aggregate_from_dir(directory: Path, *, product: str, version: str) -> list[Path]:
    """Packages of ``version`` found in a directory of downloaded cell artifacts.

    Pointer copies (``-latest``, ``-dev-latest``, ``-main-latest``), packages
    of other versions and foreign files are ignored.
    """
    suffix = f"v{version}"
    if not directory.is_dir():
        return []
    found: list[Path] = []
    for p in sorted(directory.rglob(f"*{PACKAGE_EXT}")):
        if not p.is_file():
            continue
        parsed = parse_package_name(p.name, product=product)
        if parsed is None or parsed.suffix != suffix:
            continue
        found.append(p)
    return found


# One lock per tag released by this process; entries live as long as the process.
_TAG_LOCKS: dict[str, threading.Lock] = {}
_TAG_LOCKS_GUARD = threading.Lock()


def _tag_lock(tag: str) -> threading.Lock:
    with _TAG_LOCKS_GUARD:
        return _TAG_LOCKS.setdefault(tag, threading.Lock())


class ReleaseCoordinator:
    """Drives one tag through the release state machine."""

    def __init__(
        self,
        *,
        host: ReleaseHost,
        config: PipelineConfig,
        console: ConsoleProtocol,
        workdir: Path,
        latest_storage: ObjectStorage | None = None,
        tag_message: str | None = None,
        now: datetime | None = None,
    ) -> None:
        self._host = host
        self._config = config
        self._console = console
        self._workdir = workdir
        self._latest_storage = latest_storage
        self._tag_message = tag_message
        self._now = now

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def create_or_reuse(
        self, classification: BuildClassification
    ) -> Result[tuple[ReleaseHandle, bool], ReleaseError]:
        """Return the release for the tag and whether it already existed."""
        tag = classification.version
        existing = self._host.find(tag)
        if isinstance(existing, Err):
            return existing
        if existing.value is not None:
            self._console.info(f"release {tag} already exists, reusing it")
            return Ok((existing.value, True))

        created = self._host.create(
            tag,
            title=release_title(classification, display_name=self._config.display_name),
            notes=release_notes(classification, self._tag_message),
            prerelease=classification.is_prerelease,
        )
        if isinstance(created, Ok):
            self._console.success(f"created draft release {tag}")
            return Ok((created.value, False))

        if created.error.kind != "release_exists":
            return created

        # Another run created it between our lookup and create.
        again = self._host.find(tag)
        if isinstance(again, Err):
            return again
        if again.value is None:
            return Err(
                ReleaseError(
                    kind="not_found",
                    message=f"release {tag} reported as existing but cannot be found",
                )
            )
        self._console.info(f"release {tag} was created concurrently, reusing it")
        return Ok((again.value, True))

    def stage_assets(self, packages: Iterable[Path]) -> tuple[ChecksumManifest, list[Path]]:
        """Copy packages into the staging directory and add checksum files.

        Returns the manifest and every file to attach, in upload order.
        """
        staging = self._workdir / "release-assets"
        staging.mkdir(parents=True, exist_ok=True)

        staged: dict[str, Path] = {}
        for src in packages:
            if src.name in staged:
                continue
            dest = staging / src.name
            if src.resolve() != dest.resolve():
                shutil.copyfile(src, dest)
            staged[src.name] = dest

        manifest = build_manifest(staged.values())
        sums = write_manifest(manifest, staging)
        signatures = write_signature_placeholders(manifest, staging)
        ordered = [staged[name] for name in sorted(staged)]
        return manifest, [*ordered, *sums, *signatures]

    def upload_assets(
        self, handle: ReleaseHandle, files: Sequence[Path]
    ) -> Result[list[str], ReleaseError]:
        uploaded: list[str] = []
        for path in files:
            self._console.print(f"uploading {path.name}", Style.DIM)
            result = self._host.upload_asset(handle, path)
            if isinstance(result, Err):
                return result
            uploaded.append(path.name)
        return Ok(uploaded)

    def publish(self, handle: ReleaseHandle) -> Result[ReleaseHandle, ReleaseError]:
        if not handle.draft:
            self._console.info(f"release {handle.tag} is already published")
            return Ok(handle)
        return self._host.publish(handle)

    def verify(self, handle: ReleaseHandle, expected: Iterable[str]) -> list[str]:
        """Names of expected assets the host does not list (empty when complete)."""
        listed = self._host.asset_names(handle)
        if isinstance(listed, Err):
            return [f"could not verify assets: {listed.error.message}"]
        present = set(listed.value)
        return [f"missing asset: {name}" for name in expected if name not in present]

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def run(
        self,
        classification: BuildClassification,
        packages: Sequence[Path],
    ) -> Result[CoordinatorReport, CoordinatorError]:
        if not classification.is_tagged:
            return Err(
                CoordinatorError(
                    kind="invalid_input",
                    message=f"{classification.build_type} builds are not released",
                    last_state=ReleaseState.ABSENT,
                )
            )

        tag = classification.version
        with _tag_lock(tag):
            return self._run_locked(classification, packages)

    def _run_locked(
        self,
        classification: BuildClassification,
        packages: Sequence[Path],
    ) -> Result[CoordinatorReport, CoordinatorError]:
        tag = classification.version
        console = self._console
        console.header(f"Release {tag}")

        if not packages:
            console.error("no artifacts reached the release stage")
            return Err(
                CoordinatorError(
                    kind="empty_aggregate",
                    message=f"no artifacts found for {tag}",
                    last_state=ReleaseState.ABSENT,
                    hint="every matrix cell failed; see the build summary",
                )
            )

        created = self.create_or_reuse(classification)
        if isinstance(created, Err):
            e = created.error
            return Err(
                CoordinatorError(
                    kind=e.kind, message=e.message, last_state=ReleaseState.ABSENT, hint=e.hint
                )
            )
        handle, reused = created.value
        state = ReleaseState.DRAFT if handle.draft else ReleaseState.PUBLISHED

        try:
            manifest, files = self.stage_assets(packages)
        except OSError as e:
            return Err(
                CoordinatorError(
                    kind="manifest_failed",
                    message=f"failed to stage release assets: {e}",
                    last_state=state,
                    handle=handle,
                )
            )
        console.print(f"{len(manifest.entries)} package(s), {len(files)} asset(s)", Style.DIM)

        uploaded = self.upload_assets(handle, files)
        if isinstance(uploaded, Err):
            e = uploaded.error
            return Err(
                CoordinatorError(
                    kind=e.kind, message=e.message, last_state=state, hint=e.hint, handle=handle
                )
            )
        if state is ReleaseState.DRAFT:
            state = ReleaseState.ASSETS_ATTACHED

        warnings: list[str] = []
        latest = update_latest_pointer(
            classification,
            storage=self._latest_storage,
            destination=self._config.storage.latest_uri,
            repository=self._config.repository,
            console=console,
            now=self._now,
        )
        latest_status: LatestUpdate | None = None
        if isinstance(latest, Err):
            warnings.append(f"latest.json update failed: {latest.error.message}")
            console.warning(warnings[-1])
        else:
            latest_status = latest.value
            if latest_status == "skipped_no_credentials":
                warnings.append("latest.json not updated: storage credentials unavailable")

        published = self.publish(handle)
        if isinstance(published, Err):
            e = published.error
            return Err(
                CoordinatorError(
                    kind=e.kind, message=e.message, last_state=state, hint=e.hint, handle=handle
                )
            )
        handle = published.value
        console.success(f"released {tag}: {handle.url}")

        missing = self.verify(handle, uploaded.value)
        for line in missing:
            console.warning(line)
        warnings.extend(missing)

        return Ok(
            CoordinatorReport(
                tag=tag,
                state=ReleaseState.PUBLISHED,
                handle=handle,
                reused=reused,
                packages=manifest.filenames,
                assets=tuple(uploaded.value),
                manifest=manifest,
                latest=latest_status,
                warnings=tuple(warnings),
            )
        )

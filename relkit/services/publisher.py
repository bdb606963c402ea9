"""Per-cell publication of a package and its pointer copies.

The primary package decides the outcome of the cell; pointer copies are
best effort and their failures are only reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relkit.build.classify import BuildClassification, BuildType
from relkit.build.matrix import MatrixCell
from relkit.build.naming import NamingError, package_name, pointer_names
from relkit.core.config import StorageConfig
from relkit.core.result import Err, Ok, Result
from relkit.output.console import ConsoleProtocol, Style
from relkit.platform.files import copy_as
from relkit.services.package import ArtifactPackage
from relkit.services.storage import ObjectStorage, StorageError

__all__ = [
    "PublishError",
    "PublishErrorKind",
    "PublishReport",
    "channel_for",
    "destination_for",
    "publish_package",
]

Channel = Literal["dev", "release"]
PublishErrorKind = Literal["nothing_to_publish", "name_mismatch", "upload_failed"]


@dataclass(frozen=True, slots=True)
class PublishError:
    kind: PublishErrorKind
    package: str
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class PublishReport:
    package: str
    primary_uri: str
    pointer_uris: tuple[str, ...] = ()
    pointer_failures: tuple[StorageError, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.pointer_failures


def channel_for(classification: BuildClassification) -> Channel:
    if classification.build_type is BuildType.DEVELOPMENT:
        return "dev"
    return "release"


def destination_for(classification: BuildClassification, storage: StorageConfig) -> str:
    return storage.channel_uri(channel_for(classification))


def publish_package(
    pkg: ArtifactPackage,
    classification: BuildClassification,
    *,
    cell: MatrixCell,
    storage: ObjectStorage,
    layout: StorageConfig,
    primary_platform: str,
    console: ConsoleProtocol,
) -> Result[PublishReport, PublishError]:
    if not classification.should_build:
        return Err(
            PublishError(
                kind="nothing_to_publish",
                package=pkg.filename,
                message="nothing to publish for a 'none' build",
            )
        )

    expected = package_name(
        classification, pkg.name.platform, pkg.name.arch, classification.short_hash,
        product=pkg.name.product,
    )
    if pkg.name.suffix != expected.suffix:
        return Err(
            PublishError(
                kind="name_mismatch",
                package=pkg.filename,
                message=f"{pkg.filename} does not match a {classification.build_type} build",
                hint=f"expected {expected.filename}",
            )
        )
    try:
        pointers = pointer_names(pkg.name, classification, cell, primary_platform=primary_platform)
    except NamingError as e:
        return Err(PublishError(kind="name_mismatch", package=pkg.filename, message=str(e)))

    destination = destination_for(classification, layout)
    console.print(f"[{cell.key}] uploading {pkg.filename} -> {destination}", Style.DIM)

    primary = storage.upload(pkg.path, destination)
    if isinstance(primary, Err):
        error = primary.error
        return Err(
            PublishError(
                kind="upload_failed", package=pkg.filename, message=error.message, hint=error.hint
            )
        )

    uris: list[str] = []
    failures: list[StorageError] = []
    for pointer in pointers:
        try:
            copy = copy_as(pkg.path, pointer.filename)
        except OSError as e:
            failures.append(StorageError(destination=destination, message=f"copy failed: {e}"))
            continue

        uploaded = storage.upload(copy, destination)
        if isinstance(uploaded, Err):
            failures.append(uploaded.error)
            console.warning(f"[{cell.key}] pointer upload failed: {pointer.filename}")
            continue
        uris.append(uploaded.value)
        console.print(f"[{cell.key}] pointer {pointer.filename}", Style.DIM)

    console.success(f"[{cell.key}] published {pkg.filename}")
    return Ok(
        PublishReport(
            package=pkg.filename,
            primary_uri=primary.value,
            pointer_uris=tuple(uris),
            pointer_failures=tuple(failures),
        )
    )

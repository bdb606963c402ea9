"""Per-cell artifact production boundary.

Compiling the binary is outside relkit. This module covers what surrounds
it: bundling the static console assets before the build, locating the
built binary of a cell, and zipping it under its canonical package name.

Design goals:

- Deterministic output file names (see relkit.build.naming)
- A missing console bundle degrades the package, it never fails the cell
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol
from zipfile import ZIP_DEFLATED, BadZipFile, ZipFile

from relkit.build.matrix import MatrixCell
from relkit.build.naming import PackageName
from relkit.core.config import AssetsConfig
from relkit.core.result import Err, Ok, Result
from relkit.output.console import ConsoleProtocol
from relkit.platform.files import atomic_write_text
from relkit.platform.http import HttpClient

__all__ = [
    "ArtifactPackage",
    "ArtifactProducer",
    "PackageError",
    "PrebuiltBinaryProducer",
    "STATIC_PLACEHOLDER",
    "bundle_static_assets",
    "package_binary",
]

STATIC_PLACEHOLDER = "// Static assets not available\n"


@dataclass(frozen=True, slots=True)
class PackageError:
    kind: Literal["binary_missing", "zip_failed"]
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ArtifactPackage:
    """A packaged binary, owned by its cell until handed to the publisher."""

    name: PackageName
    path: Path
    size: int
    cell: MatrixCell | None = None
    degraded: bool = False

    @property
    def filename(self) -> str:
        return self.path.name


class ArtifactProducer(Protocol):
    def produce(self, cell: MatrixCell) -> Result[Path, PackageError]:
        """Return the path of the built binary for a cell."""
        ...


class PrebuiltBinaryProducer:
    """Finds binaries the toolchain left in ``target/<triple>/release/``."""

    def __init__(self, *, root: Path, product: str) -> None:
        self._root = root
        self._product = product

    def binary_path(self, cell: MatrixCell) -> Path:
        name = f"{self._product}.exe" if cell.platform == "windows" else self._product
        return self._root / "target" / cell.target / "release" / name

    def produce(self, cell: MatrixCell) -> Result[Path, PackageError]:
        path = self.binary_path(cell)
        if not path.is_file():
            return Err(
                PackageError(
                    kind="binary_missing",
                    message=f"binary not found for {cell.key}: {path}",
                    hint=f"build target {cell.target} first",
                )
            )
        return Ok(path)


def bundle_static_assets(
    *,
    http: HttpClient,
    assets: AssetsConfig,
    root: Path,
    console: ConsoleProtocol,
) -> bool:
    """Fetch and unpack the console bundle into the static directory.

    Returns False when the bundle could not be fetched or unpacked; a
    placeholder file is written instead and the build continues without it.
    """
    static_dir = root / assets.static_dir
    static_dir.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(prefix="relkit-assets-") as tmp:
        archive = Path(tmp) / "console.zip"
        fetched = http.download(assets.console_url, archive)
        if isinstance(fetched, Err):
            console.warning(f"failed to download console assets, continuing without them: {fetched.error}")
            atomic_write_text(static_dir / "empty.txt", STATIC_PLACEHOLDER)
            return False

        try:
            with ZipFile(archive) as zf:
                zf.extractall(static_dir)
        except (BadZipFile, OSError) as e:
            console.warning(f"failed to unpack console assets, continuing without them: {e}")
            atomic_write_text(static_dir / "empty.txt", STATIC_PLACEHOLDER)
            return False

    console.success(f"console assets: {static_dir}")
    return True


def package_binary(
    binary: Path,
    *,
    name: PackageName,
    out_dir: Path,
    cell: MatrixCell | None = None,
    degraded: bool = False,
) -> Result[ArtifactPackage, PackageError]:
    """Zip a single binary as ``<out_dir>/<name>.zip``."""
    if not binary.is_file():
        return Err(PackageError(kind="binary_missing", message=f"binary not found: {binary}"))

    zip_path = out_dir / name.filename
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        # Toolchain outputs can carry mtime=0, which ZIP cannot represent.
        with ZipFile(zip_path, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
            zf.write(binary, arcname=binary.name)
    except OSError as e:
        return Err(PackageError(kind="zip_failed", message=f"failed to write {zip_path}: {e}"))

    return Ok(
        ArtifactPackage(
            name=name,
            path=zip_path,
            size=zip_path.stat().st_size,
            cell=cell,
            degraded=degraded,
        )
    )

"""Canonical package and pointer names.

Package grammar::

    <product>-<platform>-<arch>-v<version>       release / prerelease
    <product>-<platform>-<arch>-dev-<short_hash> development

Pointer copies are derived by replacing the suffix of an existing
PackageName, never by rebuilding a name from the classification, so the
grammar above is encoded in exactly one place (``package_name``).
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from relkit.build.classify import BuildClassification, BuildType
from relkit.build.matrix import MatrixCell

__all__ = [
    "PACKAGE_EXT",
    "POINTER_SUFFIXES",
    "NamingError",
    "PackageName",
    "dev_latest",
    "image_alias",
    "is_pointer_name",
    "main_latest",
    "package_name",
    "parse_package_name",
    "pointer_names",
    "release_latest",
]

PACKAGE_EXT = ".zip"

RELEASE_LATEST = "latest"
DEV_LATEST = "dev-latest"
MAIN_LATEST = "main-latest"
POINTER_SUFFIXES = frozenset({RELEASE_LATEST, DEV_LATEST, MAIN_LATEST})


class NamingError(ValueError):
    """A pointer derivation was applied to a name of the wrong kind."""


@dataclass(frozen=True, slots=True)
class PackageName:
    product: str
    platform: str
    arch: str
    suffix: str

    @property
    def stem(self) -> str:
        return f"{self.product}-{self.platform}-{self.arch}"

    @property
    def filename(self) -> str:
        return f"{self}{PACKAGE_EXT}"

    @property
    def is_pointer(self) -> bool:
        return self.suffix in POINTER_SUFFIXES

    def with_suffix(self, suffix: str) -> PackageName:
        return replace(self, suffix=suffix)

    def __str__(self) -> str:
        return f"{self.stem}-{self.suffix}"


def package_name(
    classification: BuildClassification,
    platform: str,
    arch: str,
    short_hash: str,
    *,
    product: str,
) -> PackageName:
    if classification.build_type is BuildType.DEVELOPMENT:
        suffix = f"dev-{short_hash}"
    else:
        suffix = f"v{classification.version}"
    return PackageName(product=product, platform=platform, arch=arch, suffix=suffix)


def parse_package_name(filename: str, *, product: str) -> PackageName | None:
    """Invert ``package_name`` for a file found on disk, or None if foreign."""
    name = filename.removesuffix(PACKAGE_EXT)
    if name == filename or not name.startswith(f"{product}-"):
        return None
    parts = name.removeprefix(f"{product}-").split("-", 2)
    if len(parts) != 3 or not all(parts):
        return None
    platform, arch, suffix = parts
    return PackageName(product=product, platform=platform, arch=arch, suffix=suffix)


def is_pointer_name(filename: str, *, product: str) -> bool:
    parsed = parse_package_name(filename, product=product)
    return parsed is not None and parsed.is_pointer


def release_latest(name: PackageName) -> PackageName:
    """``...-v<version>`` -> ``...-latest``."""
    if name.suffix == RELEASE_LATEST:
        return name
    if not name.suffix.startswith("v"):
        raise NamingError(f"not a versioned package name: {name}")
    return name.with_suffix(RELEASE_LATEST)


def _require_dev(name: PackageName) -> None:
    if not name.suffix.startswith("dev-") and name.suffix not in (DEV_LATEST, MAIN_LATEST):
        raise NamingError(f"not a development package name: {name}")


def dev_latest(name: PackageName) -> PackageName:
    """``...-dev-<hash>`` -> ``...-dev-latest``."""
    _require_dev(name)
    if name.suffix == MAIN_LATEST:
        raise NamingError(f"main-latest is not derived into dev-latest: {name}")
    return name.with_suffix(DEV_LATEST)


def main_latest(name: PackageName) -> PackageName:
    """``...-dev-<hash>`` -> ``...-main-latest``."""
    _require_dev(name)
    if name.suffix == DEV_LATEST:
        raise NamingError(f"dev-latest is not derived into main-latest: {name}")
    return name.with_suffix(MAIN_LATEST)


def image_alias(name: PackageName, cell: MatrixCell) -> PackageName:
    """Fixed main-latest name consumed by the image build.

    Depends only on the target triple, so a change of cross toolchain or
    runner does not move the file the image build downloads.
    """
    arch = "x86_64" if cell.target.startswith("x86_64") else "aarch64"
    return PackageName(
        product=name.product,
        platform=cell.platform,
        arch=arch,
        suffix=MAIN_LATEST,
    )


def pointer_names(
    name: PackageName,
    classification: BuildClassification,
    cell: MatrixCell,
    *,
    primary_platform: str,
) -> tuple[PackageName, ...]:
    """Every pointer copy to publish alongside ``name``, without duplicates."""
    out: list[PackageName] = []
    if classification.is_tagged:
        out.append(release_latest(name))
    elif classification.build_type is BuildType.DEVELOPMENT:
        out.append(dev_latest(name))
        if classification.on_main_branch:
            out.append(main_latest(name))
            if cell.platform == primary_platform:
                out.append(image_alias(name, cell))

    unique: list[PackageName] = []
    for item in out:
        if item not in unique:
            unique.append(item)
    return tuple(unique)

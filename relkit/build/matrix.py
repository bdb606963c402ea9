"""Build matrix cells.

A cell is one independent (runner os, target triple, cross flag, platform)
build unit. The full set is fixed ahead of time; cells share no state and
have no ordering between them.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["DEFAULT_MATRIX", "MatrixCell", "arch_from_target"]


def arch_from_target(target: str) -> str:
    """Map a target triple to the architecture used in package names."""
    if "x86_64" in target:
        return "x86_64"
    if "aarch64" in target or "arm64" in target:
        return "aarch64"
    if "armv7" in target:
        return "armv7"
    return "unknown"


@dataclass(frozen=True, slots=True)
class MatrixCell:
    os: str
    target: str
    cross: bool
    platform: str

    @property
    def arch(self) -> str:
        return arch_from_target(self.target)

    @property
    def key(self) -> str:
        """Stable identifier, e.g. ``linux-x86_64``."""
        return f"{self.platform}-{self.arch}"


DEFAULT_MATRIX: tuple[MatrixCell, ...] = (
    MatrixCell(os="ubuntu-latest", target="x86_64-unknown-linux-musl", cross=False, platform="linux"),
    MatrixCell(os="ubuntu-latest", target="aarch64-unknown-linux-musl", cross=True, platform="linux"),
    MatrixCell(os="macos-latest", target="aarch64-apple-darwin", cross=False, platform="macos"),
    MatrixCell(os="macos-latest", target="x86_64-apple-darwin", cross=False, platform="macos"),
)

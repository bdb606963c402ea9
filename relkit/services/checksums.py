"""Checksum manifest and signature placeholders for release assets."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from relkit.platform.files import atomic_write_text, file_digest

__all__ = [
    "ChecksumEntry",
    "ChecksumManifest",
    "SHA256_FILE",
    "SHA512_FILE",
    "build_manifest",
    "write_manifest",
    "write_signature_placeholders",
]

SHA256_FILE = "SHA256SUMS"
SHA512_FILE = "SHA512SUMS"


@dataclass(frozen=True, slots=True)
class ChecksumEntry:
    filename: str
    sha256: str
    sha512: str


@dataclass(frozen=True, slots=True)
class ChecksumManifest:
    entries: tuple[ChecksumEntry, ...]

    def render(self, algorithm: str) -> str:
        """``<hex>  <filename>`` lines, the format ``sha256sum -c`` reads."""
        lines = [f"{getattr(e, algorithm)}  {e.filename}" for e in self.entries]
        return "\n".join(lines) + "\n" if lines else ""

    @property
    def filenames(self) -> tuple[str, ...]:
        return tuple(e.filename for e in self.entries)


def build_manifest(paths: Iterable[Path]) -> ChecksumManifest:
    """Digest each file once; repeated filenames keep their first path."""
    by_name: dict[str, Path] = {}
    for p in paths:
        by_name.setdefault(p.name, p)

    entries = [
        ChecksumEntry(
            filename=name,
            sha256=file_digest(path, "sha256"),
            sha512=file_digest(path, "sha512"),
        )
        for name, path in sorted(by_name.items())
    ]
    return ChecksumManifest(entries=tuple(entries))


def write_manifest(manifest: ChecksumManifest, out_dir: Path) -> list[Path]:
    """Write SHA256SUMS and SHA512SUMS, replacing earlier copies."""
    written: list[Path] = []
    for filename, algorithm in ((SHA256_FILE, "sha256"), (SHA512_FILE, "sha512")):
        path = out_dir / filename
        atomic_write_text(path, manifest.render(algorithm))
        written.append(path)
    return written


def write_signature_placeholders(manifest: ChecksumManifest, out_dir: Path) -> list[Path]:
    # TODO: replace with detached GPG signatures once a release signing key exists.
    written: list[Path] = []
    for filename in manifest.filenames:
        path = out_dir / f"{filename}.asc"
        atomic_write_text(
            path,
            f"# Signature for {filename}\n# GPG signature will be added in future versions\n",
        )
        written.append(path)
    return written

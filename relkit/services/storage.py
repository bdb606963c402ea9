"""Object storage port.

The pipeline only needs ``upload(path, destination)`` with overwrite
semantics. Destinations are ``oss://bucket/key`` URIs; a destination ending
in ``/`` is a directory and the file keeps its own name.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from relkit.core.config import StorageConfig, StorageCredentials
from relkit.core.result import Err, Ok, Result
from relkit.platform.process import run as run_process

__all__ = [
    "MemoryStorage",
    "ObjectStorage",
    "OssutilStorage",
    "StorageError",
    "object_key",
]


@dataclass(frozen=True, slots=True)
class StorageError:
    destination: str
    message: str
    hint: str | None = None


@runtime_checkable
class ObjectStorage(Protocol):
    def upload(self, path: Path, destination: str) -> Result[str, StorageError]:
        """Upload path, overwriting any existing object. Returns the object URI."""
        ...


def object_key(path: Path, destination: str) -> str:
    """Resolve the final object URI for an upload."""
    if destination.endswith("/"):
        return f"{destination}{path.name}"
    return destination


class OssutilStorage:
    """Uploads with ``ossutil cp --force``; credentials go through the environment."""

    def __init__(
        self,
        *,
        storage: StorageConfig,
        credentials: StorageCredentials,
        workdir: Path,
        binary: str = "ossutil",
    ) -> None:
        self._storage = storage
        self._credentials = credentials
        self._workdir = workdir
        self._binary = binary

    def upload(self, path: Path, destination: str) -> Result[str, StorageError]:
        if not path.is_file():
            return Err(StorageError(destination=destination, message=f"file not found: {path}"))

        result = run_process(
            [self._binary, "cp", str(path), destination, "--force"],
            cwd=self._workdir,
            extra_env=self._credentials.as_env(self._storage),
            timeout=self._storage.upload_timeout,
        )
        if isinstance(result, Err):
            e = result.error
            return Err(
                StorageError(
                    destination=destination,
                    message=f"upload failed: {path.name}",
                    hint=e.stderr.strip() or str(e),
                )
            )
        return Ok(object_key(path, destination))


class MemoryStorage:
    """In-memory storage for tests and ``--dry-run``.

    ``fail_on`` holds file names whose upload is rejected.
    """

    def __init__(self, *, fail_on: set[str] | None = None) -> None:
        self.objects: dict[str, bytes] = {}
        self.uploads: list[str] = []
        self.fail_on: set[str] = set(fail_on or ())
        self._lock = threading.Lock()

    def upload(self, path: Path, destination: str) -> Result[str, StorageError]:
        key = object_key(path, destination)
        if path.name in self.fail_on:
            return Err(StorageError(destination=destination, message=f"upload failed: {path.name}"))
        try:
            data = path.read_bytes()
        except OSError as e:
            return Err(StorageError(destination=destination, message=str(e)))
        with self._lock:
            self.objects[key] = data
            self.uploads.append(key)
        return Ok(key)

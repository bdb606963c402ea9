"""Platform abstraction layer: processes, files, HTTP, git, GitHub Actions."""

from .files import atomic_write_text, copy_as, file_digest
from .process import ProcessError, run

__all__ = [
    # files
    "atomic_write_text",
    "copy_as",
    "file_digest",
    # process
    "ProcessError",
    "run",
]

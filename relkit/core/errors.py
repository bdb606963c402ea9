"""Exit codes for CLI commands.

These values are used as process exit codes by CI jobs and should remain
stable:
- 0: Success
- 1: User error (bad option, invalid tag)
- 2: Configuration error (unreadable config, missing required setting)
- 3: Build error (binary missing, packaging failed, invalid classification)
- 4: Network error (storage or release host unreachable)
- 5: I/O error (file not found, permission denied)
- 6: Release error (empty aggregate, release lifecycle failure)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    RELEASE_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

"""Result type for explicit error handling.

Every stage of the release pipeline returns a Result instead of raising, so
that a failed cell or a failed upload is a value the caller can record,
summarise, and keep going past. Callers narrow with ``isinstance`` or
``match``.

Usage:
    def find_release(tag: str) -> Result[ReleaseHandle | None, ReleaseError]:
        ...

    match find_release("1.2.3"):
        case Ok(None):
            print("no release yet")
        case Ok(handle):
            print(handle.url)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful result carrying a value."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed result carrying an error payload."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]

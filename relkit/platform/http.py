"""HTTP download abstraction.

Only used to fetch the optional static console bundle, so the surface is a
single ``download`` operation:

- HttpClient: Protocol (injectable for tests)
- RealHttpClient: urllib implementation with retries
- MockHttpClient: canned responses for tests
"""

from __future__ import annotations

import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from time import sleep
from typing import Protocol, runtime_checkable

from relkit.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        """Download url to dest, returning dest on success."""
        ...


class RealHttpClient:
    """urllib client with system certificates and linear-backoff retries."""

    def __init__(
        self,
        *,
        timeout: float = 300.0,
        retries: int = 3,
        retry_delay: float = 5.0,
        user_agent: str = "relkit",
    ) -> None:
        self.timeout = timeout
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        last: Err[HttpError] | None = None
        for attempt in range(self.retries):
            result = self._download_once(url, dest)
            if isinstance(result, Ok):
                return result
            last = result
            # 4xx other than 429 will not get better on retry.
            status = result.error.status
            if 400 <= status < 500 and status != 429:
                break
            if attempt < self.retries - 1:
                sleep(self.retry_delay * (attempt + 1))
        assert last is not None
        return last

    def _download_once(self, url: str, dest: Path) -> Result[Path, HttpError]:
        try:
            req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                dest.parent.mkdir(parents=True, exist_ok=True)
                with open(dest, "wb") as f:
                    while True:
                        chunk = response.read(8192)
                        if not chunk:
                            break
                        f.write(chunk)
            return Ok(dest)
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Download timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_download("https://example.com/console.zip", zip_bytes)
    """

    def __init__(self) -> None:
        self._responses: dict[str, bytes | HttpError] = {}
        self.calls: list[str] = []

    def set_download(self, url: str, response: bytes | HttpError) -> None:
        self._responses[url] = response

    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        self.calls.append(url)
        response = self._responses.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(response)
        return Ok(dest)

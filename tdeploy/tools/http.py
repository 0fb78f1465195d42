"""HTTPS fetching for the cranko installer.

``RealHttpClient`` behaves like ``curl --proto '=https' --tlsv1.2 -sSf``:
plain HTTP is refused and any non-2xx status is an error. Tests inject
``MockHttpClient`` instead.
"""

from __future__ import annotations

import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit

from tdeploy import __version__
from tdeploy.core.result import Err, Ok, Result

__all__ = ["HttpClient", "HttpError", "MockHttpClient", "RealHttpClient"]


@dataclass(frozen=True, slots=True)
class HttpError:
    """A failed fetch. ``status`` is 0 when no HTTP response was received."""

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        prefix = f"HTTP {self.status}: " if self.status else ""
        return f"{prefix}{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    def get_text(self, url: str) -> Result[str, HttpError]: ...


class RealHttpClient:
    def __init__(self, timeout: float = 60.0) -> None:
        self.timeout = timeout
        self._headers = {"User-Agent": f"tdeploy/{__version__}"}
        self._tls = ssl.create_default_context()
        self._tls.minimum_version = ssl.TLSVersion.TLSv1_2

    def get_text(self, url: str) -> Result[str, HttpError]:
        if urlsplit(url).scheme != "https":
            return Err(HttpError(url=url, status=0, message="refusing non-HTTPS URL"))

        request = urllib.request.Request(url, headers=self._headers)
        try:
            with urllib.request.urlopen(request, timeout=self.timeout, context=self._tls) as resp:
                body: bytes = resp.read()
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except (TimeoutError, ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e) or type(e).__name__))

        try:
            return Ok(body.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(HttpError(url=url, status=0, message=f"response is not UTF-8: {e}"))


class MockHttpClient:
    """Canned responses keyed by URL; unknown URLs answer 404.

    Usage:
        http = MockHttpClient()
        http.set_text("https://example.org/fetch.sh", "echo hi")
    """

    def __init__(self) -> None:
        self._responses: dict[str, str | HttpError] = {}
        self.calls: list[str] = []

    def set_text(self, url: str, response: str | HttpError) -> None:
        self._responses[url] = response

    def get_text(self, url: str) -> Result[str, HttpError]:
        self.calls.append(url)
        response = self._responses.get(url, HttpError(url=url, status=404, message="Not Found"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

"""
HTTP transport adapter.

The client only needs something that sends one request and hands back the
status, headers and body bytes. UrllibTransport is the default; tests and
callers with their own HTTP stack inject any object with a matching ``send``.
"""

import logging
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """Undecoded HTTP response."""

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Body decoded as UTF-8, with undecodable bytes replaced."""
        return self.body.decode("utf-8", errors="replace")


class Transport(Protocol):
    """Anything able to execute a single HTTP exchange."""

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout: float,
    ) -> RawResponse: ...


class UrllibTransport:
    """
    Transport built on urllib.request.

    HTTP error statuses are returned as responses so the client can classify
    them. Connection failures and timeouts (URLError, TimeoutError) propagate.
    """

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout: float,
    ) -> RawResponse:
        req = urllib.request.Request(url, data=body, headers=dict(headers), method=method)
        try:
            with urllib.request.urlopen(req, timeout=timeout) as response:
                return RawResponse(
                    status=response.status,
                    body=response.read(),
                    headers=dict(response.headers.items()),
                )
        except urllib.error.HTTPError as e:
            logger.debug("HTTP %s from %s %s", e.code, method, url)
            return RawResponse(
                status=e.code,
                body=e.read() or b"",
                headers=dict(e.headers.items()) if e.headers else {},
            )

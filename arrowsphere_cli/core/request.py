"""
Request builder.

Turns a method, path, query mapping and optional payload into an immutable
RequestDescriptor. Pure transformation: nothing here touches the network.
"""

import json
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from arrowsphere_cli.core.hydrator import Entity

METHODS = ("GET", "POST", "PUT", "DELETE")
JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class RequestDescriptor:
    """A fully built HTTP request, minus the base URL."""

    method: str
    path: str
    query: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None
    headers: tuple[tuple[str, str], ...] = ()

    @property
    def query_string(self) -> str:
        return urllib.parse.urlencode(self.query)

    @property
    def header_dict(self) -> dict[str, str]:
        return dict(self.headers)

    def url(self, base_url: str) -> str:
        """Absolute URL for this request against ``base_url``."""
        url = f"{base_url.rstrip('/')}{self.path}"
        if self.query:
            url = f"{url}?{self.query_string}"
        return url


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def encode_query(params: Mapping[str, Any] | None) -> tuple[tuple[str, str], ...]:
    """
    Flatten a query mapping into ordered key/value pairs.

    Insertion order is preserved, booleans become 0/1, None values are
    dropped and sequences repeat their key.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _render(item)) for item in value if item is not None)
        else:
            pairs.append((key, _render(value)))
    return tuple(pairs)


def encode_body(body: Entity | Mapping[str, Any]) -> bytes:
    """Serialize a payload to compact UTF-8 JSON."""
    data = body.to_dict() if isinstance(body, Entity) else dict(body)
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def build_request(
    method: str,
    path: str,
    params: Mapping[str, Any] | None = None,
    body: Entity | Mapping[str, Any] | None = None,
    *,
    api_key: str,
    user_agent: str,
    headers: Mapping[str, str] | None = None,
) -> RequestDescriptor:
    """
    Build a RequestDescriptor.

    Args:
        method: HTTP method (GET, POST, PUT, DELETE)
        path: API path, already formatted (e.g. /customers/XSP123/provision)
        params: Query parameters, in the order they should be sent
        body: Payload entity or mapping, sent as JSON
        api_key: Value of the apiKey header
        user_agent: Value of the User-Agent header
        headers: Extra headers, applied last

    Raises:
        ValueError: On an unsupported HTTP method

    """
    method = method.upper()
    if method not in METHODS:
        raise ValueError(f"Unsupported HTTP method: {method}")

    encoded = encode_body(body) if body is not None else None

    all_headers: dict[str, str] = {"apiKey": api_key}
    if encoded is not None or method != "GET":
        all_headers["Content-Type"] = JSON_CONTENT_TYPE
    all_headers["User-Agent"] = user_agent
    if headers:
        all_headers.update(headers)

    return RequestDescriptor(
        method=method,
        path=path,
        query=encode_query(params),
        body=encoded,
        headers=tuple(all_headers.items()),
    )

"""
Response decoding and error classification.

classify() looks at the HTTP status before anything is parsed; decode() turns
a 2xx body into an Envelope; check_envelope_status() rejects envelopes whose
own ``status`` is not a success. Shape checks go through expect(), which
raises UnexpectedShape rather than coercing.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from arrowsphere_cli.core.errors import (
    MalformedResponse,
    NotFoundException,
    PublicApiClientException,
    UnexpectedShape,
)


class JsonKind(Enum):
    """Coarse JSON value kinds."""

    OBJECT = "object"
    ARRAY = "array"
    SCALAR = "scalar"
    NULL = "null"

    @classmethod
    def of(cls, value: Any) -> "JsonKind":
        if value is None:
            return cls.NULL
        if isinstance(value, dict):
            return cls.OBJECT
        if isinstance(value, list):
            return cls.ARRAY
        return cls.SCALAR


def expect(value: Any, kind: JsonKind, where: str) -> Any:
    """Return ``value`` if it is of ``kind``, else raise UnexpectedShape."""
    actual = JsonKind.of(value)
    if actual is not kind:
        raise UnexpectedShape(f"Expected {kind.value} at {where}, got {actual.value}")
    return value


@dataclass(frozen=True)
class Envelope:
    """Decoded top-level response object."""

    status: int
    data: Any = None
    pagination: dict[str, Any] | None = None

    def data_object(self) -> dict[str, Any]:
        """The ``data`` member, which must be an object."""
        return expect(self.data, JsonKind.OBJECT, "data")

    def data_list(self, key: str) -> list[Any]:
        """The array stored under ``data.<key>``."""
        data = self.data_object()
        if key not in data:
            raise UnexpectedShape(f"Missing data.{key} in response")
        return expect(data[key], JsonKind.ARRAY, f"data.{key}")

    def data_value(self, key: str, default: Any = None) -> Any:
        """A member of the ``data`` object, or ``default`` when absent."""
        return self.data_object().get(key, default)


def _error_message(body: bytes, status: int) -> tuple[str, dict]:
    """Best-effort error message from an error body."""
    try:
        error_data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return f"HTTP {status}", {}
    if not isinstance(error_data, dict):
        return f"HTTP {status}", {}
    # Handle {"error": "message"}, {"error": {"message": "..."}} and {"message": "..."}
    error_field = error_data.get("error")
    if isinstance(error_field, str):
        message = error_field
    elif isinstance(error_field, dict) and isinstance(error_field.get("message"), str):
        message = error_field["message"]
    elif isinstance(error_data.get("message"), str):
        message = error_data["message"]
    else:
        message = f"HTTP {status}"
    return message, error_data


def classify(status: int, body: bytes) -> None:
    """
    Raise the classified error for a non-2xx HTTP status.

    Raises:
        NotFoundException: On 404
        PublicApiClientException: On any other status outside 200-299

    """
    if 200 <= status <= 299:
        return
    message, details = _error_message(body, status)
    if status == 404:
        raise NotFoundException(message, status=status, details=details)
    raise PublicApiClientException(message, status=status, details=details)


def decode(raw_body: bytes, http_status: int) -> Envelope:
    """
    Parse a response body into an Envelope.

    Raises:
        MalformedResponse: If the body is not UTF-8 JSON
        UnexpectedShape: If the JSON is not an envelope object

    """
    try:
        decoded = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedResponse(f"Invalid JSON response: {e}", status=http_status) from e

    body = expect(decoded, JsonKind.OBJECT, "response body")

    status = body.get("status", http_status)
    if isinstance(status, bool) or not isinstance(status, int):
        raise UnexpectedShape(f"Envelope status must be an integer, got {status!r}")

    pagination = body.get("pagination")
    if pagination is not None:
        expect(pagination, JsonKind.OBJECT, "pagination")

    return Envelope(status=status, data=body.get("data"), pagination=pagination)


def check_envelope_status(envelope: Envelope) -> Envelope:
    """Reject an envelope whose own status is not a success."""
    if not 200 <= envelope.status <= 299:
        details = envelope.data if isinstance(envelope.data, dict) else {}
        raise PublicApiClientException(
            f"API returned status {envelope.status}",
            status=envelope.status,
            details=details,
        )
    return envelope

"""
Error taxonomy for the ArrowSphere public API client.

Every classified failure derives from PublicApiClientException so callers can
catch one type. Transport failures are not part of this hierarchy: they are
raised by the transport and propagate unchanged.
"""

from typing import Any


class PublicApiClientException(Exception):
    """Generic client error: non-2xx status, malformed body or unexpected shape."""

    def __init__(self, message: str, status: int = 0, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.status:
            result["status"] = self.status
        if self.details:
            result["details"] = self.details
        return result


class NotFoundException(PublicApiClientException):
    """The API answered 404."""


class MalformedResponse(PublicApiClientException):
    """The response body is not valid UTF-8 JSON."""


class UnexpectedShape(PublicApiClientException):
    """The decoded JSON does not have the structure the endpoint expects."""


class EntityValidationException(PublicApiClientException):
    """A field failed validation while hydrating or building an entity."""

    def __init__(self, message: str, entity: str, field: str | None = None):
        details: dict[str, Any] = {"entity": entity}
        if field is not None:
            details["field"] = field
        super().__init__(message, details=details)
        self.entity = entity
        self.field = field

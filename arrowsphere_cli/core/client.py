"""
Core HTTP client for the ArrowSphere public API.

Handles configuration, request building, transport, error classification,
decoding and pagination. Resource-specific methods live in the SDK layer.
"""

import logging
import os
from collections.abc import Mapping
from typing import Any, TypeVar

from arrowsphere_cli.core.errors import PublicApiClientException
from arrowsphere_cli.core.hydrator import Entity
from arrowsphere_cli.core.pagination import CursorIterator, PageNumberIterator, cursor_query, page_query
from arrowsphere_cli.core.request import RequestDescriptor, build_request
from arrowsphere_cli.core.response import Envelope, check_envelope_status, classify, decode
from arrowsphere_cli.core.transport import RawResponse, Transport, UrllibTransport

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_BASE_URL = "https://publicapi.arrowsphere.com"
DEFAULT_TIMEOUT = 60
USER_AGENT = "arrowsphere-cli/0.1.0"

E = TypeVar("E", bound=Entity)

Params = Mapping[str, Any] | None
Body = Entity | Mapping[str, Any] | None


class APIClient:
    """
    Low-level HTTP client for the ArrowSphere public API.

    Handles:
    - Authentication via API key
    - HTTP methods (GET, POST, PUT, DELETE)
    - Error classification and envelope decoding
    - Page-number and cursor pagination for list endpoints
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Transport | None = None,
        user_agent: str = USER_AGENT,
    ):
        """
        Initialize the API client.

        Args:
            api_key: ArrowSphere API key (or ARROWSPHERE_API_KEY env var)
            base_url: API base URL (or ARROWSPHERE_BASE_URL env var)
            timeout: Request timeout in seconds
            transport: HTTP transport, urllib-based by default
            user_agent: User-Agent header value

        """
        self.api_key = api_key or os.environ.get("ARROWSPHERE_API_KEY")
        env_base_url = os.environ.get("ARROWSPHERE_BASE_URL", DEFAULT_BASE_URL)
        self.base_url = (base_url or env_base_url).rstrip("/")
        self.timeout = timeout
        self.transport = transport or UrllibTransport()
        self.user_agent = user_agent

    def _ensure_api_key(self) -> str:
        """Ensure API key is configured."""
        if not self.api_key:
            raise PublicApiClientException("ARROWSPHERE_API_KEY environment variable not set")
        return self.api_key

    # =========================================================================
    # Request pipeline
    # =========================================================================

    def build(self, method: str, path: str, params: Params = None, body: Body = None) -> RequestDescriptor:
        """Build a request carrying this client's credentials."""
        return build_request(
            method,
            path,
            params,
            body,
            api_key=self._ensure_api_key(),
            user_agent=self.user_agent,
        )

    def send(self, request: RequestDescriptor) -> RawResponse:
        """
        Execute a request and classify its status.

        Transport failures propagate unchanged.

        Raises:
            NotFoundException: On 404
            PublicApiClientException: On any other non-2xx status

        """
        url = request.url(self.base_url)
        logger.debug("%s %s", request.method, url)
        response = self.transport.send(request.method, url, request.header_dict, request.body, self.timeout)
        logger.debug("%s %s -> %s", request.method, url, response.status)
        classify(response.status, response.body)
        return response

    def request_raw(self, method: str, path: str, params: Params = None, body: Body = None) -> str:
        """Make a request and return the response body as text, without decoding it."""
        return self.send(self.build(method, path, params, body)).text

    def request(self, method: str, path: str, params: Params = None, body: Body = None) -> Envelope:
        """
        Make a request and decode the JSON envelope.

        Raises:
            NotFoundException: On 404
            MalformedResponse: If the body is not JSON
            UnexpectedShape: If the body is not an envelope object
            PublicApiClientException: On any other failure status

        """
        response = self.send(self.build(method, path, params, body))
        return check_envelope_status(decode(response.body, response.status))

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def get(self, path: str, params: Params = None) -> Envelope:
        """Make a GET request."""
        return self.request("GET", path, params)

    def post(self, path: str, body: Body = None, params: Params = None) -> Envelope:
        """Make a POST request."""
        return self.request("POST", path, params, body)

    def put(self, path: str, body: Body = None, params: Params = None) -> Envelope:
        """Make a PUT request."""
        return self.request("PUT", path, params, body)

    def delete(self, path: str, params: Params = None) -> Envelope:
        """Make a DELETE request."""
        return self.request("DELETE", path, params)

    # =========================================================================
    # Pagination
    # =========================================================================

    def paginate(self, path: str, kind: type[E], items_key: str, params: Params = None) -> PageNumberIterator[E]:
        """
        Iterate lazily through a page-numbered list endpoint.

        Args:
            path: API path
            kind: Entity type of each item
            items_key: Key of the item array inside ``data``
            params: Caller filters, sent verbatim on every page

        Returns:
            Iterator yielding hydrated entities from all pages

        """
        filters = dict(params or {})
        return PageNumberIterator(
            lambda page: self.get(path, page_query(filters, page)),
            kind,
            items_key,
        )

    def paginate_cursor(self, path: str, kind: type[E], items_key: str, params: Params = None) -> CursorIterator[E]:
        """
        Iterate lazily through a token-paginated list endpoint.

        Args:
            path: API path
            kind: Entity type of each item
            items_key: Key of the item array inside ``data``
            params: Caller filters, sent verbatim on every page

        Returns:
            Iterator yielding hydrated entities from all pages

        """
        filters = dict(params or {})
        return CursorIterator(
            lambda token: self.get(path, cursor_query(filters, token)),
            kind,
            items_key,
        )

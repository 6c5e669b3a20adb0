"""
Lazy pagination over list endpoints.

Both strategies are single-pass iterators driven by a ``fetch(cursor)``
callable returning an Envelope. Nothing is requested until the first item is
pulled, and the next page is only requested once the current one is drained.
Any failure leaves the iterator exhausted.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterator, Mapping
from typing import Any, Generic, TypeVar

from arrowsphere_cli.core.errors import EntityValidationException, UnexpectedShape
from arrowsphere_cli.core.hydrator import Entity, hydrate
from arrowsphere_cli.core.response import Envelope

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

DEFAULT_PER_PAGE = 100
PAGE_PARAM = "page"
PER_PAGE_PARAM = "per_page"
TOKEN_PARAM = "paginationToken"


def page_query(params: Mapping[str, Any] | None, page: int) -> dict[str, Any]:
    """
    Query for page ``page``: caller params, then ``page`` when past the first
    page, then the default ``per_page`` unless the caller chose one.
    """
    query = {k: v for k, v in (params or {}).items() if k != PAGE_PARAM}
    if page > 1:
        query[PAGE_PARAM] = page
    query.setdefault(PER_PAGE_PARAM, DEFAULT_PER_PAGE)
    return query


def cursor_query(params: Mapping[str, Any] | None, token: str | None) -> dict[str, Any]:
    """Query for a cursor page: caller params plus the token when there is one."""
    query = {k: v for k, v in (params or {}).items() if k != TOKEN_PARAM}
    if token:
        query[TOKEN_PARAM] = token
    return query


class PageIterator(Iterator[E], Generic[E], ABC):
    """
    Shared state machine: a cursor, the items of the current page not yet
    yielded, and an exhausted flag.
    """

    def __init__(self, fetch: Callable[[Any], Envelope], kind: type[E], items_key: str):
        self._fetch = fetch
        self._kind = kind
        self._items_key = items_key
        self._cursor: Any = self._initial_cursor()
        self._pending: deque[Any] = deque()
        self._exhausted = False
        self.pages_fetched = 0

    def __iter__(self) -> "PageIterator[E]":
        return self

    def __next__(self) -> E:
        while not self._pending:
            if self._exhausted:
                raise StopIteration
            self._load_page()
        item = self._pending.popleft()
        try:
            return hydrate(self._kind, item)
        except EntityValidationException:
            self._stop()
            raise

    def _load_page(self) -> None:
        # Stays exhausted unless _advance() finds another page
        self._exhausted = True
        logger.debug("Fetching %s page %d (cursor=%r)", self._kind.__name__, self.pages_fetched + 1, self._cursor)
        envelope = self._fetch(self._cursor)
        self.pages_fetched += 1
        items = envelope.data_list(self._items_key)
        self._advance(envelope)
        self._pending.extend(items)

    def _stop(self) -> None:
        self._pending.clear()
        self._exhausted = True

    @abstractmethod
    def _initial_cursor(self) -> Any:
        """Cursor used for the first fetch."""

    @abstractmethod
    def _advance(self, envelope: Envelope) -> None:
        """Move the cursor past ``envelope``, clearing the exhausted flag if another page follows."""


class PageNumberIterator(PageIterator[E]):
    """Advances ``page`` from 1 up to the first page's ``total_page``."""

    def __init__(self, fetch: Callable[[int], Envelope], kind: type[E], items_key: str):
        super().__init__(fetch, kind, items_key)
        self._total_pages: int | None = None

    def _initial_cursor(self) -> int:
        return 1

    def _advance(self, envelope: Envelope) -> None:
        if self._total_pages is None:
            self._total_pages = _total_pages(envelope)
        if self._cursor < self._total_pages:
            self._cursor += 1
            self._exhausted = False


class CursorIterator(PageIterator[E]):
    """Follows ``data.<token_key>`` until a page no longer carries one."""

    def __init__(
        self,
        fetch: Callable[[str | None], Envelope],
        kind: type[E],
        items_key: str,
        token_key: str = TOKEN_PARAM,
    ):
        self._token_key = token_key
        super().__init__(fetch, kind, items_key)

    def _initial_cursor(self) -> None:
        return None

    def _advance(self, envelope: Envelope) -> None:
        token = envelope.data_value(self._token_key)
        if token is None or token == "":
            return
        if not isinstance(token, str):
            raise UnexpectedShape(f"data.{self._token_key} must be a string, got {type(token).__name__}")
        self._cursor = token
        self._exhausted = False


def _total_pages(envelope: Envelope) -> int:
    if envelope.pagination is None:
        return 1
    total = envelope.pagination.get("total_page")
    if total is None:
        return 1
    if isinstance(total, bool) or not isinstance(total, int):
        raise UnexpectedShape(f"pagination.total_page must be an integer, got {total!r}")
    return total

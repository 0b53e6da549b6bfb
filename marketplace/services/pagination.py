"""Page bookkeeping for search screens.

A :class:`PaginationCoordinator` belongs to one screen context. It turns
search, load-more and refresh intents into offset/limit queries, merges the
returned pages into the accumulated result list and discards responses to
requests that have been superseded.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ..core.config import settings
from ..core.errors import TRANSIENT_ERRORS, ErrorInfo, QueryFailure, StaleResponse
from ..schemas.properties import (
    FilterSpec,
    OutcomeStatus,
    PageIntent,
    PageOutcome,
    PageResult,
    PageWindow,
)
from .filters import apply_search_query

logger = logging.getLogger(__name__)

PageFetcher = Callable[[FilterSpec, int, int], Awaitable[PageResult]]


@dataclass(frozen=True)
class PageRequest:
    intent: PageIntent
    spec: FilterSpec
    offset: int
    limit: int


class PaginationCoordinator:
    """Accumulates pages of listings (or any paged feed) for one screen.

    At most one query is in flight at a time.
    """

    def __init__(
        self,
        fetch: PageFetcher,
        *,
        spec: FilterSpec | None = None,
        limit: int | None = None,
    ) -> None:
        self._fetch = fetch
        self.spec = spec or FilterSpec()
        self.search_query = ""
        self.items: list[Any] = []
        self.window = PageWindow(limit=limit or settings.page_size)
        self.error: ErrorInfo | None = None
        self._sequence = 0
        self._in_flight: int | None = None
        self._applied: PageRequest | None = None
        self._last_request: PageRequest | None = None

    @property
    def loading(self) -> bool:
        return self._in_flight is not None

    @property
    def has_more(self) -> bool:
        return self.window.has_more

    async def search(
        self,
        spec: FilterSpec | None = None,
        search_query: str | None = None,
    ) -> PageOutcome:
        """Start over from the first page, replacing the result list."""

        if spec is not None:
            self.spec = spec
        if search_query is not None:
            self.search_query = search_query
        return await self._run(self._first_page(PageIntent.SEARCH))

    async def refresh(self) -> PageOutcome:
        """Reload the first page keeping the active filters and search query."""

        return await self._run(self._first_page(PageIntent.REFRESH))

    async def load_more(self) -> PageOutcome:
        """Append the next page; ignored while busy or when nothing is left."""

        if self._in_flight is not None:
            logger.debug("Ignoring load-more while request %s is pending", self._in_flight)
            return self._outcome(PageIntent.LOAD_MORE, OutcomeStatus.IGNORED)
        if self._applied is None or not self.window.has_more:
            return self._outcome(PageIntent.LOAD_MORE, OutcomeStatus.IGNORED)

        request = PageRequest(
            intent=PageIntent.LOAD_MORE,
            spec=self._applied.spec,
            offset=self.window.offset + self.window.limit,
            limit=self.window.limit,
        )
        return await self._run(request)

    async def retry(self) -> PageOutcome:
        """Re-issue the last request with identical parameters."""

        request = self._last_request
        if request is None:
            return self._outcome(PageIntent.SEARCH, OutcomeStatus.IGNORED)
        if request.intent is PageIntent.LOAD_MORE and self._in_flight is not None:
            return self._outcome(request.intent, OutcomeStatus.IGNORED)
        return await self._run(request)

    def _first_page(self, intent: PageIntent) -> PageRequest:
        return PageRequest(
            intent=intent,
            spec=apply_search_query(self.spec, self.search_query),
            offset=0,
            limit=self.window.limit,
        )

    async def _run(self, request: PageRequest) -> PageOutcome:
        self._sequence += 1
        sequence = self._sequence
        self._in_flight = sequence
        self._last_request = request

        failure: QueryFailure | None = None
        page: PageResult | None = None
        try:
            page = await self._fetch(request.spec, request.limit, request.offset)
        except QueryFailure as exc:
            failure = exc
        except TRANSIENT_ERRORS as exc:
            failure = QueryFailure("Query timed out or lost its connection")
            failure.__cause__ = exc
        finally:
            if self._in_flight == sequence:
                self._in_flight = None

        if sequence != self._sequence:
            stale = StaleResponse(sequence, self._sequence)
            logger.debug("Discarding %s response: %s", request.intent.value, stale)
            return self._outcome(request.intent, OutcomeStatus.STALE, stale.to_info())

        if failure is not None:
            self.error = failure.to_info()
            logger.warning(
                "%s failed at offset %s: %s", request.intent.value, request.offset, failure
            )
            return self._outcome(request.intent, OutcomeStatus.FAILED, self.error)

        self.error = None
        if request.intent is PageIntent.LOAD_MORE:
            self.items = [*self.items, *page.items]
        else:
            self.items = list(page.items)
        self.window = PageWindow(
            offset=request.offset, limit=request.limit, total_count=page.total_count
        )
        self._applied = request
        return self._outcome(request.intent, OutcomeStatus.OK)

    def _outcome(
        self,
        intent: PageIntent,
        status: OutcomeStatus,
        error: ErrorInfo | None = None,
    ) -> PageOutcome:
        return PageOutcome(
            status=status,
            intent=intent,
            items=list(self.items),
            window=self.window,
            error=error,
        )

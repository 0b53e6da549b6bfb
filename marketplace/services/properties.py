"""Client-facing property queries composed from filtering, paging and similarity."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable
from uuid import uuid4

from ..core.config import Settings, settings as default_settings
from ..core.errors import TRANSIENT_ERRORS, MarketplaceError, NotFound, QueryFailure, RequestRejected
from ..repositories.properties import PropertyRepository
from ..schemas.properties import (
    FilterSpec,
    ListingKind,
    LookupOutcome,
    OutcomeStatus,
    PageResult,
    Property,
    RequestOutcome,
)
from ..schemas.session import UserRole, UserSession
from .favorites import FavoritesTracker
from .filters import apply_search_query, pin_listing_kind
from .pagination import PaginationCoordinator
from .similarity import find_similar

logger = logging.getLogger(__name__)


class PropertyQueryService:
    """Entry point for rental search, sale search and listing lookups.

    Paged queries raise :class:`QueryFailure` and are meant to be driven by a
    :class:`PaginationCoordinator` (see the ``*_pager`` factories); one-shot
    lookups return :class:`LookupOutcome` values.
    """

    def __init__(
        self,
        repository: PropertyRepository,
        favorites: FavoritesTracker | None = None,
        config: Settings | None = None,
    ) -> None:
        self._repository = repository
        self._favorites = favorites
        self._settings = config or default_settings

    async def search_rentals(
        self,
        spec: FilterSpec | None = None,
        limit: int | None = None,
        offset: int = 0,
        *,
        search_query: str | None = None,
    ) -> PageResult:
        return await self._search(ListingKind.RENT, spec, limit, offset, search_query)

    async def search_sales(
        self,
        spec: FilterSpec | None = None,
        limit: int | None = None,
        offset: int = 0,
        *,
        search_query: str | None = None,
    ) -> PageResult:
        return await self._search(ListingKind.SALE, spec, limit, offset, search_query)

    async def listings_by_landlord(self, landlord_id: str, limit: int | None = None, offset: int = 0) -> PageResult:
        return await self._repository.by_owner(
            landlord_id=landlord_id, limit=limit or self._settings.page_size, offset=offset
        )

    async def listings_by_agent(self, agent_id: str, limit: int | None = None, offset: int = 0) -> PageResult:
        return await self._repository.by_owner(
            agent_id=agent_id, limit=limit or self._settings.page_size, offset=offset
        )

    async def saved_properties(
        self,
        session: UserSession,
        limit: int | None = None,
        offset: int = 0,
    ) -> PageResult:
        """Page through the listings the user has saved, in repository order."""

        if self._favorites is not None:
            saved_ids = self._favorites.favorite_ids(session)
        else:
            saved_ids = frozenset(session.saved_property_ids)
        return await self._repository.by_ids(
            saved_ids, limit=limit or self._settings.page_size, offset=offset
        )

    def rental_pager(self, spec: FilterSpec | None = None) -> PaginationCoordinator:
        return PaginationCoordinator(self.search_rentals, spec=spec, limit=self._settings.page_size)

    def sale_pager(self, spec: FilterSpec | None = None) -> PaginationCoordinator:
        return PaginationCoordinator(self.search_sales, spec=spec, limit=self._settings.page_size)

    def landlord_pager(self, landlord_id: str) -> PaginationCoordinator:
        async def fetch(_spec: FilterSpec, limit: int, offset: int) -> PageResult:
            return await self.listings_by_landlord(landlord_id, limit, offset)

        return PaginationCoordinator(fetch, limit=self._settings.page_size)

    def agent_pager(self, agent_id: str) -> PaginationCoordinator:
        async def fetch(_spec: FilterSpec, limit: int, offset: int) -> PageResult:
            return await self.listings_by_agent(agent_id, limit, offset)

        return PaginationCoordinator(fetch, limit=self._settings.page_size)

    def saved_pager(self, session: UserSession) -> PaginationCoordinator:
        async def fetch(_spec: FilterSpec, limit: int, offset: int) -> PageResult:
            return await self.saved_properties(session, limit, offset)

        return PaginationCoordinator(fetch, limit=self._settings.page_size)

    async def get_property(self, property_id: str) -> LookupOutcome:
        async def load() -> list[Property]:
            return [await self._require(property_id)]

        return await self._lookup("get_property", load())

    async def featured(self, kind: ListingKind | None = None, limit: int | None = None) -> LookupOutcome:
        limit = limit or self._settings.featured_limit
        return await self._lookup("featured", self._repository.featured(kind, limit))

    async def recent(self, kind: ListingKind | None = None, limit: int | None = None) -> LookupOutcome:
        limit = limit or self._settings.page_size
        return await self._lookup("recent", self._repository.recent(kind, limit))

    async def similar(self, property_id: str, limit: int | None = None) -> LookupOutcome:
        """Related listings of the same kind and type within the price band."""

        async def load() -> list[Property]:
            reference = await self._require(property_id)
            wanted = limit or self._settings.similar_limit
            band = self._settings.similarity_price_band
            # Inclusive bounds narrow the scan; is_similar applies the strict band.
            scope = FilterSpec(
                listing_kind=reference.listing_kind,
                property_type=reference.property_type,
                price_min=reference.price * (1 - band),
                price_max=reference.price * (1 + band),
            )

            similar: list[Property] = []
            offset = 0
            while len(similar) < wanted:
                page = await self._repository.query(scope, self._settings.similar_scan_limit, offset)
                similar.extend(
                    find_similar(reference, page.items, limit=wanted - len(similar), band=band)
                )
                if not page.items or not page.has_more:
                    break
                offset += page.limit
            return similar

        return await self._lookup("similar", load())

    async def apply_for_rental(
        self,
        session: UserSession,
        property_id: str,
        message: str = "",
    ) -> RequestOutcome:
        """Submit a rental application for an available rent listing."""

        async def submit() -> str:
            if session.role is not UserRole.TENANT:
                raise RequestRejected("Only tenants can apply for rentals")
            prop = await self._require(property_id)
            if prop.listing_kind is not ListingKind.RENT:
                raise RequestRejected("Applications are only accepted for rentals")
            if not prop.available:
                raise RequestRejected("This property is not available")
            return f"app-{uuid4().hex[:12]}"

        return await self._request("apply_for_rental", submit(), state="pending")

    async def schedule_viewing(
        self,
        session: UserSession,
        property_id: str,
        when: datetime,
    ) -> RequestOutcome:
        """Book a viewing of a sale listing at a future time."""

        async def submit() -> str:
            if session.role not in (UserRole.BUYER, UserRole.AGENT):
                raise RequestRejected("Only buyers and agents can schedule viewings")
            if _ensure_tz(when) <= datetime.now(timezone.utc):
                raise RequestRejected("Viewing time is in the past")
            prop = await self._require(property_id)
            if prop.listing_kind is not ListingKind.SALE:
                raise RequestRejected("Viewings are only scheduled for sale listings")
            return f"view-{uuid4().hex[:12]}"

        return await self._request("schedule_viewing", submit(), state="scheduled")

    async def _search(
        self,
        kind: ListingKind,
        spec: FilterSpec | None,
        limit: int | None,
        offset: int,
        search_query: str | None,
    ) -> PageResult:
        effective = pin_listing_kind(apply_search_query(spec or FilterSpec(), search_query), kind)
        return await self._repository.query(effective, limit or self._settings.page_size, offset)

    async def _require(self, property_id: str) -> Property:
        prop = await self._repository.get(property_id)
        if prop is None:
            raise NotFound(property_id)
        return prop

    async def _lookup(self, operation: str, call: Awaitable[list[Property]]) -> LookupOutcome:
        try:
            properties = await call
        except NotFound as exc:
            return LookupOutcome(status=OutcomeStatus.NOT_FOUND, error=exc.to_info())
        except QueryFailure as exc:
            logger.warning("%s failed: %s", operation, exc)
            return LookupOutcome(status=OutcomeStatus.FAILED, error=exc.to_info())
        except TRANSIENT_ERRORS as exc:
            logger.warning("%s did not complete: %s", operation, exc)
            failure = QueryFailure("Query timed out or lost its connection")
            return LookupOutcome(status=OutcomeStatus.FAILED, error=failure.to_info())
        return LookupOutcome(status=OutcomeStatus.OK, properties=list(properties))

    async def _request(self, operation: str, call: Awaitable[str], *, state: str) -> RequestOutcome:
        try:
            reference = await call
        except NotFound as exc:
            return RequestOutcome(status=OutcomeStatus.NOT_FOUND, error=exc.to_info())
        except RequestRejected as exc:
            return RequestOutcome(status=OutcomeStatus.REJECTED, error=exc.to_info())
        except MarketplaceError as exc:
            logger.warning("%s failed: %s", operation, exc)
            return RequestOutcome(status=OutcomeStatus.FAILED, error=exc.to_info())
        except TRANSIENT_ERRORS as exc:
            logger.warning("%s did not complete: %s", operation, exc)
            failure = QueryFailure("Request timed out or lost its connection")
            return RequestOutcome(status=OutcomeStatus.FAILED, error=failure.to_info())

        logger.info("%s accepted as %s", operation, reference)
        return RequestOutcome(status=OutcomeStatus.OK, reference=reference, state=state)


def _ensure_tz(value: datetime) -> datetime:
    """Ensure the datetime is timezone-aware in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

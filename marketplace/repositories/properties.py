"""Data access for property listings.

Two repositories satisfy :class:`PropertyRepository`: an in-memory catalog
(optionally delayed to mimic a remote backend) and a SQLAlchemy-backed one.
Both keep a stable order across pagination calls against the same snapshot.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Protocol, Sequence

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import settings
from ..core.errors import TRANSIENT_ERRORS, QueryFailure
from ..models.listing import Listing
from ..schemas.properties import (
    AnyCount,
    AtLeastCount,
    ExactCount,
    FilterSpec,
    ListingKind,
    PageResult,
    Property,
)
from ..services.filters import filter_properties

logger = logging.getLogger(__name__)

BACKEND_ERRORS = (SQLAlchemyError, *TRANSIENT_ERRORS)


class PropertyRepository(Protocol):
    """Source of property records consumed by the query engine."""

    async def query(self, spec: FilterSpec, limit: int, offset: int) -> PageResult: ...

    async def get(self, property_id: str) -> Property | None: ...

    async def by_ids(self, property_ids: Iterable[str], *, limit: int, offset: int) -> PageResult: ...

    async def by_owner(
        self,
        *,
        landlord_id: str | None = None,
        agent_id: str | None = None,
        limit: int,
        offset: int,
    ) -> PageResult: ...

    async def featured(self, kind: ListingKind | None, limit: int) -> list[Property]: ...

    async def recent(self, kind: ListingKind | None, limit: int) -> list[Property]: ...


def _page(items: Sequence[Property], *, limit: int, offset: int) -> PageResult:
    return PageResult(
        items=list(items[offset : offset + limit]),
        total_count=len(items),
        offset=offset,
        limit=limit,
    )


class InMemoryPropertyRepository:
    """Catalog held in memory, filtered with the predicate engine."""

    def __init__(self, properties: Iterable[Property], latency_ms: int | None = None) -> None:
        self._properties: list[Property] = list(properties)
        self._latency = (settings.simulated_latency_ms if latency_ms is None else latency_ms) / 1000

    async def _pause(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    async def query(self, spec: FilterSpec, limit: int, offset: int) -> PageResult:
        await self._pause()
        return _page(filter_properties(self._properties, spec), limit=limit, offset=offset)

    async def get(self, property_id: str) -> Property | None:
        await self._pause()
        return next((prop for prop in self._properties if prop.id == property_id), None)

    async def by_ids(self, property_ids: Iterable[str], *, limit: int, offset: int) -> PageResult:
        await self._pause()
        wanted = set(property_ids)
        return _page([p for p in self._properties if p.id in wanted], limit=limit, offset=offset)

    async def by_owner(
        self,
        *,
        landlord_id: str | None = None,
        agent_id: str | None = None,
        limit: int,
        offset: int,
    ) -> PageResult:
        await self._pause()
        owned = [
            prop
            for prop in self._properties
            if (landlord_id is None or prop.landlord_id == landlord_id)
            and (agent_id is None or prop.agent_id == agent_id)
        ]
        return _page(owned, limit=limit, offset=offset)

    async def featured(self, kind: ListingKind | None, limit: int) -> list[Property]:
        await self._pause()
        featured = [p for p in self._properties if p.featured and (kind is None or p.listing_kind is kind)]
        return featured[:limit]

    async def recent(self, kind: ListingKind | None, limit: int) -> list[Property]:
        await self._pause()
        scoped = [p for p in self._properties if kind is None or p.listing_kind is kind]
        return sorted(scoped, key=lambda prop: prop.created_at, reverse=True)[:limit]


def build_search_statement(spec: FilterSpec) -> Select[tuple[Listing]]:
    """Translate a FilterSpec into an unpaginated listing query."""

    stmt = select(Listing)

    if spec.listing_kind is not None:
        stmt = stmt.where(Listing.listing_kind == spec.listing_kind.value)
    if spec.property_type is not None:
        stmt = stmt.where(Listing.property_type == spec.property_type.value)
    if spec.price_min is not None:
        stmt = stmt.where(Listing.price >= spec.price_min)
    if spec.price_max is not None:
        stmt = stmt.where(Listing.price <= spec.price_max)

    stmt = _apply_count(stmt, Listing.bedrooms, spec.bedrooms)
    stmt = _apply_count(stmt, Listing.bathrooms, spec.bathrooms)

    location = spec.location.strip().lower()
    if location:
        stmt = stmt.where(func.lower(Listing.location).contains(location, autoescape=True))
    if spec.amenities:
        stmt = stmt.where(Listing.amenities.contains(sorted(spec.amenities)))

    keyword = spec.keyword.strip().lower()
    if keyword:
        stmt = stmt.where(
            or_(
                func.lower(Listing.title).contains(keyword, autoescape=True),
                func.lower(Listing.description).contains(keyword, autoescape=True),
            )
        )

    return stmt


def _apply_count(stmt: Select, column, criterion: AnyCount | ExactCount | AtLeastCount) -> Select:
    if isinstance(criterion, ExactCount):
        return stmt.where(column == criterion.value)
    if isinstance(criterion, AtLeastCount):
        return stmt.where(column >= criterion.value)
    return stmt


class SqlPropertyRepository:
    """Listing repository backed by the relational database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        if session_factory is None:
            from ..db.session import get_sessionmaker

            session_factory = get_sessionmaker()
        self._session_factory = session_factory

    async def query(self, spec: FilterSpec, limit: int, offset: int) -> PageResult:
        return await self._paginate(build_search_statement(spec), limit=limit, offset=offset)

    async def get(self, property_id: str) -> Property | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(Listing, property_id)
        except BACKEND_ERRORS as exc:
            logger.warning("Listing lookup failed for %s: %s", property_id, exc)
            raise QueryFailure("Could not load the property") from exc
        return Property.model_validate(row) if row is not None else None

    async def by_ids(self, property_ids: Iterable[str], *, limit: int, offset: int) -> PageResult:
        ids = list(property_ids)
        if not ids:
            return PageResult(total_count=0, offset=offset, limit=limit)
        stmt = select(Listing).where(Listing.id.in_(ids))
        return await self._paginate(stmt, limit=limit, offset=offset)

    async def by_owner(
        self,
        *,
        landlord_id: str | None = None,
        agent_id: str | None = None,
        limit: int,
        offset: int,
    ) -> PageResult:
        conditions = []
        if landlord_id is not None:
            conditions.append(Listing.landlord_id == landlord_id)
        if agent_id is not None:
            conditions.append(Listing.agent_id == agent_id)
        stmt = select(Listing).where(and_(*conditions)) if conditions else select(Listing)
        return await self._paginate(stmt, limit=limit, offset=offset)

    async def featured(self, kind: ListingKind | None, limit: int) -> list[Property]:
        stmt = select(Listing).where(Listing.featured.is_(True))
        if kind is not None:
            stmt = stmt.where(Listing.listing_kind == kind.value)
        return await self._fetch(_ordered(stmt).limit(limit))

    async def recent(self, kind: ListingKind | None, limit: int) -> list[Property]:
        stmt = select(Listing)
        if kind is not None:
            stmt = stmt.where(Listing.listing_kind == kind.value)
        return await self._fetch(_ordered(stmt).limit(limit))

    async def _paginate(self, stmt: Select, *, limit: int, offset: int) -> PageResult:
        count_stmt = select(func.count()).select_from(stmt.subquery())
        page_stmt = _ordered(stmt).offset(offset).limit(limit)
        try:
            async with self._session_factory() as session:
                total = (await session.execute(count_stmt)).scalar_one()
                rows = (await session.execute(page_stmt)).scalars().all()
        except BACKEND_ERRORS as exc:
            logger.warning("Listing query failed (offset=%s, limit=%s): %s", offset, limit, exc)
            raise QueryFailure("Could not load properties") from exc

        return PageResult(
            items=[Property.model_validate(row) for row in rows],
            total_count=total,
            offset=offset,
            limit=limit,
        )

    async def _fetch(self, stmt: Select) -> list[Property]:
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except BACKEND_ERRORS as exc:
            logger.warning("Listing query failed: %s", exc)
            raise QueryFailure("Could not load properties") from exc
        return [Property.model_validate(row) for row in rows]


def _ordered(stmt: Select) -> Select:
    """Newest listings first, ties broken by id for stable pages."""

    return stmt.order_by(Listing.created_at.desc(), Listing.id.asc())

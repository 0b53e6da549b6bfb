"""Service-level tests for the property query facade."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from marketplace.core.config import Settings
from marketplace.core.errors import QueryFailure
from marketplace.repositories.properties import InMemoryPropertyRepository
from marketplace.schemas.properties import (
    FilterForm,
    FilterSpec,
    ListingKind,
    OutcomeStatus,
    PageResult,
    PropertyType,
)
from marketplace.services.favorites import FavoritesTracker
from marketplace.services.properties import PropertyQueryService


@pytest.fixture
def rentals(make_property):
    """20 rentals of which rental-1, -6, -11 and -16 are 3-bedroom houses."""

    properties = []
    for i in range(20):
        is_match = i % 5 == 0
        properties.append(
            make_property(
                id=f"rental-{i + 1}",
                property_type=PropertyType.HOUSE if is_match or i % 5 == 1 else PropertyType.APARTMENT,
                bedrooms=3 if is_match or i % 5 == 2 else 2,
                price=500 + i * 50,
            )
        )
    return properties


@pytest.fixture
def mixed_catalog(make_property, rentals):
    sales = [
        make_property(
            id=f"sale-{i + 1}",
            listing_kind=ListingKind.SALE,
            property_type=PropertyType.HOUSE,
            bedrooms=3,
            price=100_000 + i * 10_000,
            featured=i == 0,
        )
        for i in range(3)
    ]
    return [*rentals, *sales]


@pytest.mark.asyncio
async def test_rental_search_end_to_end(rentals) -> None:
    service = PropertyQueryService(InMemoryPropertyRepository(rentals, latency_ms=0))
    form = FilterForm(
        propertyType="house", bedrooms="3", priceMin=0, priceMax=10000, amenities=[], keyword=""
    )

    outcome = await service.rental_pager(form.to_spec()).search()

    assert outcome.status is OutcomeStatus.OK
    assert [p.id for p in outcome.items] == ["rental-1", "rental-6", "rental-11", "rental-16"]
    assert outcome.window.total_count == 4
    assert outcome.has_more is False


@pytest.mark.asyncio
async def test_listing_kind_is_pinned(mixed_catalog) -> None:
    service = PropertyQueryService(InMemoryPropertyRepository(mixed_catalog, latency_ms=0))

    rentals = await service.search_rentals(FilterSpec(listing_kind=ListingKind.SALE), 50, 0)
    sales = await service.search_sales(FilterSpec(listing_kind=ListingKind.RENT), 50, 0)

    assert {p.listing_kind for p in rentals.items} == {ListingKind.RENT}
    assert rentals.total_count == 20
    assert [p.id for p in sales.items] == ["sale-1", "sale-2", "sale-3"]


@pytest.mark.asyncio
async def test_search_query_overrides_keyword(make_property) -> None:
    cottage = make_property(title="Garden Cottage")
    flat = make_property(title="City Flat", description="Near the park")
    service = PropertyQueryService(InMemoryPropertyRepository([cottage, flat], latency_ms=0))

    page = await service.search_rentals(FilterSpec(keyword="flat"), 10, 0, search_query="cottage")

    assert page.items == [cottage]


@pytest.mark.asyncio
async def test_similar_uses_reference_kind_and_type(mixed_catalog) -> None:
    service = PropertyQueryService(InMemoryPropertyRepository(mixed_catalog, latency_ms=0))

    outcome = await service.similar("sale-1")

    assert outcome.status is OutcomeStatus.OK
    assert [p.id for p in outcome.properties] == ["sale-2", "sale-3"]


@pytest.mark.asyncio
async def test_similar_sees_matches_beyond_a_crowded_type(make_property) -> None:
    reference = make_property(id="ref", price=1000)
    expensive = [make_property(id=f"pricey-{i}", price=5000) for i in range(210)]
    close = [make_property(id=f"close-{i}", price=1000) for i in range(4)]
    service = PropertyQueryService(
        InMemoryPropertyRepository([reference, *expensive, *close], latency_ms=0)
    )

    outcome = await service.similar("ref")

    assert outcome.status is OutcomeStatus.OK
    assert [p.id for p in outcome.properties] == ["close-0", "close-1", "close-2", "close-3"]


@pytest.mark.asyncio
async def test_similar_pages_through_candidates_in_order(make_property) -> None:
    prices = {"ref": 1000, "a": 1000, "b": 1290, "edge-high": 1300, "edge-low": 700, "c": 950, "d": 1050}
    catalog = [make_property(id=pid, price=price) for pid, price in prices.items()]
    repository = InMemoryPropertyRepository(catalog, latency_ms=0)
    service = PropertyQueryService(repository, config=Settings(similar_scan_limit=2))

    outcome = await service.similar("ref", limit=4)

    assert [p.id for p in outcome.properties] == ["a", "b", "c", "d"]


@pytest.mark.asyncio
async def test_similar_for_missing_reference_is_not_found(mixed_catalog) -> None:
    service = PropertyQueryService(InMemoryPropertyRepository(mixed_catalog, latency_ms=0))

    outcome = await service.similar("missing")

    assert outcome.status is OutcomeStatus.NOT_FOUND
    assert outcome.error is not None and outcome.error.retryable is False


@pytest.mark.asyncio
async def test_lookup_failure_is_reported() -> None:
    repository = AsyncMock()
    repository.featured.side_effect = QueryFailure("timeout")
    service = PropertyQueryService(repository)

    outcome = await service.featured(ListingKind.RENT)

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error is not None and outcome.error.code == "query_failed"


@pytest.mark.asyncio
async def test_lookup_timeout_is_reported_as_failure() -> None:
    repository = AsyncMock()
    repository.recent.side_effect = asyncio.TimeoutError()
    service = PropertyQueryService(repository)

    outcome = await service.recent()

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error is not None and outcome.error.retryable is True


@pytest.mark.asyncio
async def test_featured_and_recent(mixed_catalog) -> None:
    service = PropertyQueryService(InMemoryPropertyRepository(mixed_catalog, latency_ms=0))

    featured = await service.featured(ListingKind.SALE)
    recent = await service.recent(ListingKind.RENT, limit=2)

    assert [p.id for p in featured.properties] == ["sale-1"]
    assert [p.id for p in recent.properties] == ["rental-20", "rental-19"]


@pytest.mark.asyncio
async def test_get_property(mixed_catalog) -> None:
    service = PropertyQueryService(InMemoryPropertyRepository(mixed_catalog, latency_ms=0))

    found = await service.get_property("rental-3")
    missing = await service.get_property("rental-99")

    assert found.properties[0].id == "rental-3"
    assert missing.status is OutcomeStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_saved_properties_follow_tracker(mixed_catalog, tenant_session) -> None:
    tracker = FavoritesTracker(AsyncMock())
    service = PropertyQueryService(InMemoryPropertyRepository(mixed_catalog, latency_ms=0), tracker)
    for property_id in ("sale-2", "rental-5", "rental-1"):
        await tracker.toggle(tenant_session, property_id)

    outcome = await service.saved_pager(tenant_session).search()

    assert [p.id for p in outcome.items] == ["rental-1", "rental-5", "sale-2"]
    assert outcome.window.total_count == 3


@pytest.mark.asyncio
async def test_owner_listings_are_paginated(make_property) -> None:
    owned = [make_property(landlord_id="l2") for _ in range(12)]
    others = [make_property(landlord_id="l3") for _ in range(3)]
    service = PropertyQueryService(InMemoryPropertyRepository([*owned, *others], latency_ms=0))

    pager = service.landlord_pager("l2")
    first = await pager.search()
    second = await pager.load_more()

    assert first.has_more is True
    assert len(second.items) == 12
    assert second.has_more is False


@pytest.mark.asyncio
async def test_agent_listings_delegate_to_repository() -> None:
    repository = AsyncMock()
    repository.by_owner.return_value = PageResult(total_count=0, offset=0, limit=10)
    service = PropertyQueryService(repository)

    await service.listings_by_agent("a1")

    repository.by_owner.assert_awaited_once_with(agent_id="a1", limit=10, offset=0)


@pytest.mark.asyncio
async def test_apply_for_rental_rules(make_property, tenant_session, buyer_session) -> None:
    open_rental = make_property(id="open")
    taken = make_property(id="taken", available=False)
    for_sale = make_property(id="sale", listing_kind=ListingKind.SALE)
    service = PropertyQueryService(
        InMemoryPropertyRepository([open_rental, taken, for_sale], latency_ms=0)
    )

    accepted = await service.apply_for_rental(tenant_session, "open", "We have two kids")
    unavailable = await service.apply_for_rental(tenant_session, "taken")
    wrong_kind = await service.apply_for_rental(tenant_session, "sale")
    wrong_role = await service.apply_for_rental(buyer_session, "open")
    missing = await service.apply_for_rental(tenant_session, "nope")

    assert accepted.status is OutcomeStatus.OK
    assert accepted.state == "pending"
    assert accepted.reference.startswith("app-")
    assert unavailable.status is OutcomeStatus.REJECTED
    assert wrong_kind.status is OutcomeStatus.REJECTED
    assert wrong_role.status is OutcomeStatus.REJECTED
    assert missing.status is OutcomeStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_schedule_viewing_rules(make_property, buyer_session) -> None:
    house = make_property(id="house", listing_kind=ListingKind.SALE)
    service = PropertyQueryService(InMemoryPropertyRepository([house], latency_ms=0))
    tomorrow = datetime.now(timezone.utc) + timedelta(days=1)

    booked = await service.schedule_viewing(buyer_session, "house", tomorrow)
    past = await service.schedule_viewing(buyer_session, "house", tomorrow - timedelta(days=2))

    assert booked.status is OutcomeStatus.OK
    assert booked.state == "scheduled"
    assert booked.reference.startswith("view-")
    assert past.status is OutcomeStatus.REJECTED

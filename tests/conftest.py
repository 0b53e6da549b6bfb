"""Shared fixtures for the marketplace test-suite."""
from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from marketplace.schemas.properties import ListingKind, Property, PropertyType
from marketplace.schemas.session import UserRole, UserSession

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_property():
    """Factory building valid properties with overridable fields."""

    counter = itertools.count(1)

    def _make(**overrides) -> Property:
        index = next(counter)
        kind = overrides.get("listing_kind", ListingKind.RENT)
        fields = {
            "id": f"prop-{index}",
            "listing_kind": kind,
            "property_type": PropertyType.HOUSE,
            "title": "2 Bedroom House in Borrowdale",
            "price": 1000,
            "bedrooms": 2,
            "bathrooms": 1,
            "area": 800,
            "location": "Harare, Borrowdale",
            "description": "Spacious family home with a modern kitchen.",
            "images": ("https://example.com/cover.jpg",),
            "amenities": frozenset({"Parking"}),
            "created_at": BASE_TIME + timedelta(hours=index),
        }
        if kind is ListingKind.RENT:
            fields["landlord_id"] = "l1"
        else:
            fields["agent_id"] = "a1"
        fields.update(overrides)
        return Property(**fields)

    return _make


@pytest.fixture
def tenant_session() -> UserSession:
    return UserSession(user_id="t1", role=UserRole.TENANT, token="token-t1", name="John Doe")


@pytest.fixture
def buyer_session() -> UserSession:
    return UserSession(user_id="b1", role=UserRole.BUYER, token="token-b1", name="Michael Johnson")

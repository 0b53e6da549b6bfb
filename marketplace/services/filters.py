"""Predicate engine deciding whether property records match search criteria."""
from __future__ import annotations

from typing import Iterable

from ..schemas.properties import AnyCount, FilterSpec, ListingKind, Property


def matches(prop: Property, spec: FilterSpec) -> bool:
    """Return True when every active predicate in ``spec`` holds for ``prop``."""

    if spec.listing_kind is not None and prop.listing_kind is not spec.listing_kind:
        return False
    if spec.property_type is not None and prop.property_type is not spec.property_type:
        return False
    if spec.price_min is not None and prop.price < spec.price_min:
        return False
    if spec.price_max is not None and prop.price > spec.price_max:
        return False
    if not spec.bedrooms.accepts(prop.bedrooms):
        return False
    if not spec.bathrooms.accepts(prop.bathrooms):
        return False

    location = spec.location.strip().lower()
    if location and location not in prop.location.lower():
        return False

    if spec.amenities and not spec.amenities <= prop.amenities:
        return False

    keyword = spec.keyword.strip().lower()
    if keyword and keyword not in prop.title.lower() and keyword not in prop.description.lower():
        return False

    return True


def filter_properties(properties: Iterable[Property], spec: FilterSpec) -> list[Property]:
    """Return matching properties in their original relative order."""

    return [prop for prop in properties if matches(prop, spec)]


def active_filter_count(spec: FilterSpec) -> int:
    """Count the badge dimensions that deviate from their inactive default."""

    active = (
        spec.price_min is not None,
        spec.price_max is not None,
        not isinstance(spec.bedrooms, AnyCount),
        not isinstance(spec.bathrooms, AnyCount),
        spec.property_type is not None,
        bool(spec.amenities),
        bool(spec.keyword.strip()),
    )
    return sum(active)


def has_active_filters(spec: FilterSpec) -> bool:
    return active_filter_count(spec) > 0


def apply_search_query(spec: FilterSpec, query: str | None) -> FilterSpec:
    """Let a non-blank search box value take precedence over the filter keyword."""

    if query and query.strip():
        return spec.model_copy(update={"keyword": query})
    return spec


def pin_listing_kind(spec: FilterSpec, kind: ListingKind) -> FilterSpec:
    """Force the listing kind regardless of what the caller supplied."""

    if spec.listing_kind is kind:
        return spec
    return spec.model_copy(update={"listing_kind": kind})

"""Related-listing lookup based on kind, type and price proximity."""
from __future__ import annotations

from typing import Iterable

from ..core.config import settings
from ..schemas.properties import Property


def is_similar(candidate: Property, reference: Property, band: float | None = None) -> bool:
    """Return True when ``candidate`` is an eligible related listing.

    Prices must differ by strictly less than ``band`` of the reference price.
    A zero-priced reference only matches other zero-priced candidates.
    """

    band = settings.similarity_price_band if band is None else band

    if candidate.id == reference.id:
        return False
    if candidate.listing_kind is not reference.listing_kind:
        return False
    if candidate.property_type is not reference.property_type:
        return False
    if reference.price == 0:
        return candidate.price == 0
    return abs(candidate.price - reference.price) / reference.price < band


def find_similar(
    reference: Property,
    candidates: Iterable[Property],
    *,
    limit: int | None = None,
    band: float | None = None,
) -> list[Property]:
    """Return the first ``limit`` similar candidates in iteration order."""

    limit = settings.similar_limit if limit is None else limit
    if limit <= 0:
        return []

    similar: list[Property] = []
    for candidate in candidates:
        if is_similar(candidate, reference, band):
            similar.append(candidate)
            if len(similar) >= limit:
                break
    return similar

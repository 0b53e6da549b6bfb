"""Deterministic sample catalog used for demos and database seeding."""
from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from ..schemas.properties import ListingKind, Property, PropertyType

IMAGES: tuple[str, ...] = (
    "https://images.unsplash.com/photo-1580587771525-78b9dba3b914",
    "https://images.unsplash.com/photo-1568605114967-8130f3a36994",
    "https://images.unsplash.com/photo-1523217582562-09d0def993a6",
    "https://images.unsplash.com/photo-1512917774080-9991f1c4c750",
    "https://images.unsplash.com/photo-1600585154340-be6161a56a0c",
    "https://images.unsplash.com/photo-1600607687939-ce8a6c25118c",
    "https://images.unsplash.com/photo-1600047509807-ba8f99d2cdde",
    "https://images.unsplash.com/photo-1600585152220-90363fe7e115",
    "https://images.unsplash.com/photo-1524758631624-e2822e304c36",
    "https://images.unsplash.com/photo-1503174971373-b1f69c758416",
)

LOCATIONS: tuple[str, ...] = (
    "Harare, Borrowdale",
    "Bulawayo, Suburbs",
    "Harare, Mount Pleasant",
    "Harare, Avondale",
    "Mutare, Murambi",
    "Bulawayo, Hillside",
    "Harare, Avenues",
    "Gweru, Windsor Park",
    "Harare, Greendale",
    "Victoria Falls, Landela",
)

AMENITIES: tuple[str, ...] = (
    "Parking",
    "Swimming Pool",
    "Security",
    "Borehole",
    "Solar Power",
    "Furnished",
    "Garden",
    "DSTV",
    "Gym",
    "Balcony",
    "Wifi",
    "Air Conditioning",
)

LAND_AMENITIES: tuple[str, ...] = ("Borehole", "Electricity", "Road Access")


def _suburb(index: int) -> str:
    return LOCATIONS[index % len(LOCATIONS)].split(",")[1].strip()


def _images(start: int, count: int) -> tuple[str, ...]:
    return tuple(IMAGES[(start + step) % len(IMAGES)] for step in range(count))


def _amenities(start: int, count: int) -> frozenset[str]:
    return frozenset(AMENITIES[(start + step) % len(AMENITIES)] for step in range(count))


def build_catalog(seed: int = 7, now: datetime | None = None) -> list[Property]:
    """Return 20 rentals, 15 sales and 10 land plots, stable for a given seed."""

    rng = random.Random(seed)
    now = now or datetime.now(timezone.utc)
    catalog: list[Property] = []

    for i in range(20):
        bedrooms = rng.randint(1, 4)
        bathrooms = rng.randint(1, 3)
        location = LOCATIONS[i % len(LOCATIONS)]
        catalog.append(
            Property(
                id=f"rental-{i + 1}",
                listing_kind=ListingKind.RENT,
                property_type=PropertyType.HOUSE if i % 2 == 0 else PropertyType.APARTMENT,
                title=f"{bedrooms} Bedroom House in {_suburb(i)}",
                price=rng.randint(500, 1999),
                bedrooms=bedrooms,
                bathrooms=bathrooms,
                area=rng.randint(500, 1499),
                location=location,
                description=(
                    f"Beautiful {bedrooms} bedroom property located in a prime area of {location}. "
                    f"This property features {bathrooms} bathrooms, spacious living areas, "
                    "and a modern kitchen."
                ),
                images=_images(i, 3),
                amenities=_amenities(i, rng.randint(3, 8)),
                landlord_id=f"l{rng.randint(1, 3)}",
                available=rng.random() > 0.2,
                featured=i < 5,
                created_at=now - timedelta(days=rng.uniform(0, 30)),
            )
        )

    sale_types = (PropertyType.APARTMENT, PropertyType.HOUSE, PropertyType.VILLA)
    for i in range(15):
        bedrooms = rng.randint(2, 6)
        bathrooms = rng.randint(1, 4)
        location = LOCATIONS[i % len(LOCATIONS)]
        catalog.append(
            Property(
                id=f"sale-{i + 1}",
                listing_kind=ListingKind.SALE,
                property_type=sale_types[i % 3],
                title=f"{bedrooms} Bedroom House for Sale in {_suburb(i)}",
                price=rng.randint(50_000, 249_999),
                bedrooms=bedrooms,
                bathrooms=bathrooms,
                area=rng.randint(1000, 2999),
                location=location,
                description=(
                    f"Luxurious {bedrooms} bedroom property for sale in {location}. "
                    f"Features include {bathrooms} bathrooms and a modern kitchen."
                ),
                images=_images(i + 5, 3),
                amenities=_amenities(i, rng.randint(4, 11)),
                agent_id=f"a{rng.randint(1, 3)}",
                featured=i < 4,
                created_at=now - timedelta(days=rng.uniform(0, 60)),
            )
        )

    for i in range(10):
        location = LOCATIONS[i % len(LOCATIONS)]
        catalog.append(
            Property(
                id=f"land-{i + 1}",
                listing_kind=ListingKind.SALE,
                property_type=PropertyType.LAND,
                title=f"{rng.randint(200, 2199)} sqm Land for Sale in {_suburb(i)}",
                price=rng.randint(10_000, 59_999),
                area=rng.randint(200, 2199),
                location=location,
                description=f"Prime land available for sale in {location}. All papers are in order.",
                images=_images(i + 8, 1),
                amenities=frozenset(a for a in LAND_AMENITIES if rng.random() > 0.3),
                agent_id=f"a{rng.randint(1, 3)}",
                featured=i < 2,
                created_at=now - timedelta(days=rng.uniform(0, 90)),
            )
        )

    return catalog

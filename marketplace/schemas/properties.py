"""Schemas for property records, search criteria, pages and outcomes."""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Annotated, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.config import settings
from ..core.errors import ErrorInfo


class ListingKind(str, enum.Enum):
    RENT = "rent"
    SALE = "sale"


class PropertyType(str, enum.Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    VILLA = "villa"
    LAND = "land"


class Property(BaseModel):
    """Read-only listing record served by a property repository."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    listing_kind: ListingKind
    property_type: PropertyType
    title: str
    price: float = Field(ge=0)
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    area: float = Field(gt=0)
    location: str
    description: str = ""
    images: tuple[str, ...] = ()
    amenities: frozenset[str] = frozenset()
    landlord_id: str | None = None
    agent_id: str | None = None
    featured: bool = False
    available: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_listing_rules(self) -> "Property":
        if self.listing_kind is ListingKind.RENT and not self.landlord_id:
            raise ValueError("rent listings require a landlord_id")
        if self.listing_kind is ListingKind.SALE and not self.agent_id:
            raise ValueError("sale listings require an agent_id")
        if self.property_type is PropertyType.LAND and (self.bedrooms or self.bathrooms):
            raise ValueError("land listings cannot have bedrooms or bathrooms")
        return self

    @property
    def cover_image(self) -> str | None:
        return self.images[0] if self.images else None


class AnyCount(BaseModel):
    """Bedroom/bathroom criterion that accepts every count."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["any"] = "any"

    def accepts(self, count: int) -> bool:
        return True


class ExactCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["exactly"] = "exactly"
    value: int = Field(ge=0)

    def accepts(self, count: int) -> bool:
        return count == self.value


class AtLeastCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["at_least"] = "at_least"
    value: int = Field(ge=0)

    def accepts(self, count: int) -> bool:
        return count >= self.value


CountFilter = Annotated[Union[AnyCount, ExactCount, AtLeastCount], Field(discriminator="mode")]


class FilterSpec(BaseModel):
    """Structured search criteria.

    ``None`` bounds, ``AnyCount`` buckets, empty amenities and blank text are
    inactive and never reject a property. ``price_min=0`` is a real bound.
    """

    model_config = ConfigDict(frozen=True)

    listing_kind: ListingKind | None = None
    property_type: PropertyType | None = None
    price_min: float | None = Field(default=None, ge=0)
    price_max: float | None = Field(default=None, ge=0)
    bedrooms: CountFilter = Field(default_factory=AnyCount)
    bathrooms: CountFilter = Field(default_factory=AnyCount)
    location: str = ""
    amenities: frozenset[str] = frozenset()
    keyword: str = ""


def parse_bucket(label: str | int, buckets: list[str]) -> AnyCount | ExactCount | AtLeastCount:
    """Convert a form bucket label (``"any"``, ``"3"``, ``"5+"``) to a criterion."""

    text = str(label).strip().lower()
    if text == "any":
        return AnyCount()
    if text not in buckets:
        raise ValueError(f"unknown bucket {label!r}; expected one of {['any', *buckets]}")
    if text.endswith("+"):
        return AtLeastCount(value=int(text[:-1]))
    return ExactCount(value=int(text))


class FilterForm(BaseModel):
    """Filter values as the search screen holds them."""

    model_config = ConfigDict(populate_by_name=True)

    price_min: float = Field(default=0, ge=0, alias="priceMin")
    price_max: float = Field(default=settings.price_max_sentinel, ge=0, alias="priceMax")
    bedrooms: str | int = "any"
    bathrooms: str | int = "any"
    property_type: str = Field(default="any", alias="propertyType")
    amenities: list[str] = Field(default_factory=list)
    keyword: str = ""
    location: str = ""

    def to_spec(self) -> FilterSpec:
        """Translate sentinel form values into an explicit FilterSpec."""

        property_type = None if self.property_type == "any" else PropertyType(self.property_type)
        return FilterSpec(
            property_type=property_type,
            price_min=self.price_min if self.price_min > 0 else None,
            price_max=self.price_max if self.price_max < settings.price_max_sentinel else None,
            bedrooms=parse_bucket(self.bedrooms, settings.bedroom_buckets),
            bathrooms=parse_bucket(self.bathrooms, settings.bathroom_buckets),
            amenities=frozenset(self.amenities),
            keyword=self.keyword,
            location=self.location,
        )


ItemT = TypeVar("ItemT")


class PageResult(BaseModel, Generic[ItemT]):
    """One page returned by a repository query."""

    items: list[ItemT] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0)

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total_count


class PageWindow(BaseModel):
    """Pagination cursor for a screen context."""

    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=settings.page_size, ge=1)
    total_count: int | None = None

    @property
    def has_more(self) -> bool:
        if self.total_count is None:
            return False
        return self.offset + self.limit < self.total_count


class OutcomeStatus(str, enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    IGNORED = "ignored"
    STALE = "stale"
    REJECTED = "rejected"


class PageIntent(str, enum.Enum):
    SEARCH = "search"
    LOAD_MORE = "load_more"
    REFRESH = "refresh"


class PageOutcome(BaseModel, Generic[ItemT]):
    status: OutcomeStatus
    intent: PageIntent
    items: list[ItemT] = Field(default_factory=list)
    window: PageWindow
    error: ErrorInfo | None = None

    @property
    def has_more(self) -> bool:
        return self.window.has_more


class LookupOutcome(BaseModel):
    status: OutcomeStatus
    properties: list[Property] = Field(default_factory=list)
    error: ErrorInfo | None = None


class ToggleOutcome(BaseModel):
    status: OutcomeStatus
    property_id: str
    is_favorite: bool
    error: ErrorInfo | None = None


class RequestOutcome(BaseModel):
    """Result of a rental application or viewing request."""

    status: OutcomeStatus
    reference: str | None = None
    state: str | None = None
    error: ErrorInfo | None = None

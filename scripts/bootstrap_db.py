"""Create database schema and seed the sample catalog for development."""
from __future__ import annotations

import asyncio
import logging

from marketplace.core.logging import configure_logging
from marketplace.data.listings import build_catalog
from marketplace.data.notifications import build_notifications
from marketplace.db.session import get_engine, get_sessionmaker
from marketplace.models.base import Base
from marketplace.models.listing import Listing
from marketplace.models.notification import UserNotification
from marketplace.schemas.notifications import Notification
from marketplace.schemas.properties import Property

logger = logging.getLogger("bootstrap_db")

LISTING_FIELDS = (
	"listing_kind",
	"property_type",
	"title",
	"price",
	"bedrooms",
	"bathrooms",
	"area",
	"location",
	"description",
	"landlord_id",
	"agent_id",
	"featured",
	"available",
	"created_at",
)


async def create_schema() -> None:
	"""Create all tables if they do not exist."""

	async with get_engine().begin() as conn:
		await conn.run_sync(Base.metadata.create_all)


def listing_values(prop: Property) -> dict[str, object]:
	"""Column values for a catalog property."""

	values: dict[str, object] = {name: getattr(prop, name) for name in LISTING_FIELDS}
	values["listing_kind"] = prop.listing_kind.value
	values["property_type"] = prop.property_type.value
	values["images"] = list(prop.images)
	values["amenities"] = sorted(prop.amenities)
	return values


async def seed_listings(catalog: list[Property]) -> None:
	"""Insert or update catalog listings."""

	async with get_sessionmaker()() as session:
		async with session.begin():
			for prop in catalog:
				values = listing_values(prop)
				listing = await session.get(Listing, prop.id)
				if listing is None:
					session.add(Listing(id=prop.id, **values))
				else:
					for name, value in values.items():
						setattr(listing, name, value)


async def seed_notifications(notifications: list[Notification]) -> None:
	"""Insert sample notifications that are not stored yet."""

	async with get_sessionmaker()() as session:
		async with session.begin():
			for notification in notifications:
				if await session.get(UserNotification, notification.id) is None:
					session.add(UserNotification(**notification.model_dump()))


async def main() -> None:
	configure_logging()
	catalog = build_catalog()
	notifications = build_notifications()
	await create_schema()
	await seed_listings(catalog)
	await seed_notifications(notifications)
	logger.info(
		"Database schema ensured; %s listings and %s notifications seeded.",
		len(catalog),
		len(notifications),
	)


if __name__ == "__main__":
	asyncio.run(main())

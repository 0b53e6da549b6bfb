"""Sample notification feed for the demo users."""
from __future__ import annotations

from datetime import datetime, timezone

from ..schemas.notifications import Notification


def _at(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


def build_notifications() -> list[Notification]:
    return [
        Notification(
            id="n1",
            user_id="t1",
            title="Rent Due Reminder",
            message="Your rent payment is due in 3 days.",
            type="reminder",
            created_at=_at("2023-07-28T09:15:00"),
        ),
        Notification(
            id="n2",
            user_id="t1",
            title="Application Approved",
            message="Your application for the property has been approved!",
            type="application",
            read=True,
            created_at=_at("2023-07-15T14:30:00"),
        ),
        Notification(
            id="n3",
            user_id="t1",
            title="Maintenance Request",
            message="Your maintenance request has been scheduled for tomorrow.",
            type="maintenance",
            created_at=_at("2023-07-25T11:45:00"),
        ),
        Notification(
            id="n4",
            user_id="l1",
            title="New Application",
            message="You have a new tenant application for your property.",
            type="application",
            created_at=_at("2023-07-27T16:20:00"),
        ),
        Notification(
            id="n5",
            user_id="l1",
            title="Rent Payment Received",
            message="You have received a rent payment of $750.",
            type="payment",
            read=True,
            created_at=_at("2023-07-03T10:10:00"),
        ),
        Notification(
            id="n6",
            user_id="b1",
            title="Property Price Reduced",
            message="A property in your saved list has reduced its price.",
            type="price_change",
            created_at=_at("2023-07-26T08:50:00"),
        ),
        Notification(
            id="n7",
            user_id="a1",
            title="New Lead",
            message="You have a new lead interested in one of your listings.",
            type="lead",
            created_at=_at("2023-07-29T13:25:00"),
        ),
    ]

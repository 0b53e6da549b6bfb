"""Data access for user notifications."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Protocol

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import settings
from ..core.errors import QueryFailure
from ..models.notification import UserNotification
from ..schemas.notifications import Notification, NotificationPage
from .properties import BACKEND_ERRORS

logger = logging.getLogger(__name__)


class NotificationRepository(Protocol):
    async def page(self, user_id: str, *, limit: int, offset: int) -> NotificationPage: ...

    async def get(self, notification_id: str) -> Notification | None: ...

    async def mark_read(self, notification_id: str) -> bool: ...

    async def mark_all_read(self, user_id: str) -> int: ...


class InMemoryNotificationRepository:
    """Notification feed held in memory, newest first per user."""

    def __init__(self, notifications: Iterable[Notification], latency_ms: int | None = None) -> None:
        self._notifications: dict[str, Notification] = {n.id: n for n in notifications}
        self._latency = (settings.simulated_latency_ms if latency_ms is None else latency_ms) / 1000

    async def _pause(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    async def page(self, user_id: str, *, limit: int, offset: int) -> NotificationPage:
        await self._pause()
        feed = sorted(
            (n for n in self._notifications.values() if n.user_id == user_id),
            key=lambda n: (-n.created_at.timestamp(), n.id),
        )
        return NotificationPage(
            items=feed[offset : offset + limit],
            total_count=len(feed),
            offset=offset,
            limit=limit,
            unread_count=sum(not n.read for n in feed),
        )

    async def get(self, notification_id: str) -> Notification | None:
        await self._pause()
        return self._notifications.get(notification_id)

    async def mark_read(self, notification_id: str) -> bool:
        await self._pause()
        notification = self._notifications.get(notification_id)
        if notification is None:
            return False
        self._notifications[notification_id] = notification.model_copy(update={"read": True})
        return True

    async def mark_all_read(self, user_id: str) -> int:
        await self._pause()
        unread = [n for n in self._notifications.values() if n.user_id == user_id and not n.read]
        for notification in unread:
            self._notifications[notification.id] = notification.model_copy(update={"read": True})
        return len(unread)


class SqlNotificationRepository:
    """Notification feed stored in the ``notifications`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        if session_factory is None:
            from ..db.session import get_sessionmaker

            session_factory = get_sessionmaker()
        self._session_factory = session_factory

    async def page(self, user_id: str, *, limit: int, offset: int) -> NotificationPage:
        owned = UserNotification.user_id == user_id
        totals_stmt = select(
            func.count(),
            func.count().filter(UserNotification.read.is_(False)),
        ).where(owned)
        page_stmt = (
            select(UserNotification)
            .where(owned)
            .order_by(UserNotification.created_at.desc(), UserNotification.id.asc())
            .offset(offset)
            .limit(limit)
        )
        try:
            async with self._session_factory() as session:
                total, unread = (await session.execute(totals_stmt)).one()
                rows = (await session.execute(page_stmt)).scalars().all()
        except BACKEND_ERRORS as exc:
            logger.warning("Notification query failed for %s: %s", user_id, exc)
            raise QueryFailure("Could not load notifications") from exc

        return NotificationPage(
            items=[Notification.model_validate(row) for row in rows],
            total_count=total,
            offset=offset,
            limit=limit,
            unread_count=unread,
        )

    async def get(self, notification_id: str) -> Notification | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(UserNotification, notification_id)
        except BACKEND_ERRORS as exc:
            logger.warning("Notification lookup failed for %s: %s", notification_id, exc)
            raise QueryFailure("Could not load the notification") from exc
        return Notification.model_validate(row) if row is not None else None

    async def mark_read(self, notification_id: str) -> bool:
        stmt = (
            update(UserNotification)
            .where(UserNotification.id == notification_id)
            .values(read=True)
        )
        return await self._update(stmt) > 0

    async def mark_all_read(self, user_id: str) -> int:
        stmt = (
            update(UserNotification)
            .where(UserNotification.user_id == user_id, UserNotification.read.is_(False))
            .values(read=True)
        )
        return await self._update(stmt)

    async def _update(self, stmt) -> int:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
        except BACKEND_ERRORS as exc:
            logger.warning("Notification update failed: %s", exc)
            raise QueryFailure("Could not update notifications") from exc
        return result.rowcount

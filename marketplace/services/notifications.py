"""Per-user notification feed with unread tracking."""
from __future__ import annotations

import logging
from typing import Dict

from ..core.config import Settings, settings as default_settings
from ..core.errors import TRANSIENT_ERRORS, NotFound, QueryFailure
from ..repositories.notifications import NotificationRepository
from ..schemas.notifications import NotificationOutcome, NotificationPage
from ..schemas.properties import FilterSpec, OutcomeStatus
from ..schemas.session import UserSession
from .pagination import PaginationCoordinator

logger = logging.getLogger(__name__)


class NotificationService:
    """Reads and acknowledges the signed-in user's notifications.

    ``unread_count`` reflects the most recent page or acknowledgement seen
    for a user; it is ``None`` until the feed has been read once.
    """

    def __init__(self, repository: NotificationRepository, config: Settings | None = None) -> None:
        self._repository = repository
        self._settings = config or default_settings
        self._unread: Dict[str, int] = {}

    async def feed(
        self,
        session: UserSession,
        limit: int | None = None,
        offset: int = 0,
    ) -> NotificationPage:
        page = await self._repository.page(
            session.user_id, limit=limit or self._settings.page_size, offset=offset
        )
        self._unread[session.user_id] = page.unread_count
        return page

    def pager(self, session: UserSession) -> PaginationCoordinator:
        async def fetch(_spec: FilterSpec, limit: int, offset: int) -> NotificationPage:
            return await self.feed(session, limit, offset)

        return PaginationCoordinator(fetch, limit=self._settings.page_size)

    async def preview(self, session: UserSession, limit: int | None = None) -> NotificationOutcome:
        """Latest notifications for the dashboard."""

        try:
            page = await self.feed(session, limit or self._settings.notification_preview_limit)
        except QueryFailure as exc:
            logger.warning("Notification preview failed for %s: %s", session.user_id, exc)
            return NotificationOutcome(status=OutcomeStatus.FAILED, error=exc.to_info())
        except TRANSIENT_ERRORS as exc:
            logger.warning("Notification preview did not complete for %s: %s", session.user_id, exc)
            failure = QueryFailure("Query timed out or lost its connection")
            return NotificationOutcome(status=OutcomeStatus.FAILED, error=failure.to_info())
        return NotificationOutcome(
            status=OutcomeStatus.OK,
            notifications=page.items,
            unread_count=page.unread_count,
        )

    def unread_count(self, session: UserSession) -> int | None:
        return self._unread.get(session.user_id)

    async def mark_read(self, session: UserSession, notification_id: str) -> OutcomeStatus:
        try:
            notification = await self._repository.get(notification_id)
            # Another user's notification is reported as missing.
            if notification is None or notification.user_id != session.user_id:
                raise NotFound(notification_id, kind="Notification")
            if not notification.read:
                await self._repository.mark_read(notification_id)
                if self._unread.get(session.user_id):
                    self._unread[session.user_id] -= 1
        except NotFound:
            return OutcomeStatus.NOT_FOUND
        except (QueryFailure, *TRANSIENT_ERRORS) as exc:
            logger.warning("Marking %s read failed: %s", notification_id, exc)
            return OutcomeStatus.FAILED
        return OutcomeStatus.OK

    async def mark_all_read(self, session: UserSession) -> OutcomeStatus:
        try:
            updated = await self._repository.mark_all_read(session.user_id)
        except (QueryFailure, *TRANSIENT_ERRORS) as exc:
            logger.warning("Marking all read failed for %s: %s", session.user_id, exc)
            return OutcomeStatus.FAILED
        logger.debug("Marked %s notifications read for %s", updated, session.user_id)
        self._unread[session.user_id] = 0
        return OutcomeStatus.OK

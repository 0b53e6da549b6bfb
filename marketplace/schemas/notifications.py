"""Schemas for the per-user notification feed."""
from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import ErrorInfo
from .properties import OutcomeStatus, PageResult


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    user_id: str
    title: str
    message: str = ""
    type: str = "general"
    read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationPage(PageResult[Notification]):
    """A page of notifications, newest first, with the user's unread total."""

    unread_count: int = Field(default=0, ge=0)


class NotificationOutcome(BaseModel):
    """Dashboard preview: the latest notifications and the unread total."""

    status: OutcomeStatus
    notifications: list[Notification] = Field(default_factory=list)
    unread_count: int = 0
    error: ErrorInfo | None = None

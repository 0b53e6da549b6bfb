"""Schemas for the signed-in user context."""
from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict


class UserRole(str, enum.Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"
    BUYER = "buyer"
    AGENT = "agent"
    ADMIN = "admin"


class UserSession(BaseModel):
    """Explicit session context threaded into queries and favorites."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    token: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    saved_property_ids: tuple[str, ...] = ()

"""Backing stores that confirm and serve a user's saved listings."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import QueryFailure, ToggleConfirmationFailure
from ..models.favorite import Favorite
from ..services.credentials import CredentialStore, user_data_key
from .properties import BACKEND_ERRORS

logger = logging.getLogger(__name__)


class FavoritesStore(Protocol):
    """Source of truth for saved listings."""

    async def set_saved(self, user_id: str, property_id: str, saved: bool) -> None: ...

    async def list_saved(self, user_id: str) -> list[str]: ...


class CredentialFavoritesStore:
    """Keeps saved IDs inside the stored user data, like the mobile client."""

    def __init__(self, credentials: CredentialStore) -> None:
        self._credentials = credentials

    async def set_saved(self, user_id: str, property_id: str, saved: bool) -> None:
        session = self._credentials.get(user_data_key(user_id))
        if session is None:
            raise ToggleConfirmationFailure(f"No stored user data for {user_id}")

        saved_ids = [pid for pid in session.saved_property_ids if pid != property_id]
        if saved:
            saved_ids.append(property_id)
        self._credentials.set(
            user_data_key(user_id),
            session.model_copy(update={"saved_property_ids": tuple(saved_ids)}),
        )

    async def list_saved(self, user_id: str) -> list[str]:
        session = self._credentials.get(user_data_key(user_id))
        if session is None:
            return []
        return list(session.saved_property_ids)


class SqlFavoritesStore:
    """Favorites persisted in the ``favorites`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        if session_factory is None:
            from ..db.session import get_sessionmaker

            session_factory = get_sessionmaker()
        self._session_factory = session_factory

    async def set_saved(self, user_id: str, property_id: str, saved: bool) -> None:
        if saved:
            stmt = (
                insert(Favorite)
                .values(user_id=user_id, property_id=property_id, created_at=datetime.now(timezone.utc))
                .on_conflict_do_nothing(index_elements=[Favorite.user_id, Favorite.property_id])
            )
        else:
            stmt = delete(Favorite).where(
                Favorite.user_id == user_id, Favorite.property_id == property_id
            )

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(stmt)
        except BACKEND_ERRORS as exc:
            logger.warning("Favorite update failed for %s/%s: %s", user_id, property_id, exc)
            raise ToggleConfirmationFailure("Failed to update favorite status") from exc

    async def list_saved(self, user_id: str) -> list[str]:
        stmt = (
            select(Favorite.property_id)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.asc())
        )
        try:
            async with self._session_factory() as session:
                return list((await session.execute(stmt)).scalars().all())
        except BACKEND_ERRORS as exc:
            logger.warning("Loading favorites failed for %s: %s", user_id, exc)
            raise QueryFailure("Could not load saved properties") from exc

"""Saved-listing tracking with optimistic toggles and rollback."""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Dict

from ..core.errors import TRANSIENT_ERRORS, QueryFailure, ToggleConfirmationFailure
from ..repositories.favorites import FavoritesStore
from ..schemas.properties import OutcomeStatus, ToggleOutcome
from ..schemas.session import UserSession

logger = logging.getLogger(__name__)


class EntryState(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass
class _Entry:
    saved: bool
    state: EntryState = EntryState.CONFIRMED


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class FavoritesTracker:
    """Per-user favorite sets, mutated only through :meth:`toggle`.

    Each entry is either confirmed by the backing store or pending while a
    confirmation is outstanding. Toggles on the same (user, property) pair
    are serialized so a second toggle never flips an unconfirmed entry.
    """

    def __init__(self, store: FavoritesStore) -> None:
        self._store = store
        self._entries: Dict[str, Dict[str, _Entry]] = {}
        self._locks: Dict[tuple[str, str], _KeyLock] = {}

    async def load(self, session: UserSession) -> OutcomeStatus:
        """Re-synchronize confirmed entries from the backing store."""

        try:
            saved_ids = await self._store.list_saved(session.user_id)
        except (QueryFailure, *TRANSIENT_ERRORS) as exc:
            logger.warning("Could not load favorites for %s: %s", session.user_id, exc)
            return OutcomeStatus.FAILED

        current = self._entries.get(session.user_id, {})
        pending = {pid: entry for pid, entry in current.items() if entry.state is EntryState.PENDING}
        entries = {pid: _Entry(saved=True) for pid in saved_ids}
        entries.update(pending)
        self._entries[session.user_id] = entries
        return OutcomeStatus.OK

    async def toggle(self, session: UserSession, property_id: str) -> ToggleOutcome:
        """Flip membership locally, then confirm it with the backing store."""

        key = (session.user_id, property_id)
        key_lock = self._locks.setdefault(key, _KeyLock())
        key_lock.holders += 1
        try:
            async with key_lock.lock:
                return await self._flip(session, property_id)
        finally:
            key_lock.holders -= 1
            if not key_lock.holders:
                self._locks.pop(key, None)

    async def _flip(self, session: UserSession, property_id: str) -> ToggleOutcome:
        current = self._entries.get(session.user_id, {}).get(property_id)
        previous = current.saved if current else False
        target = not previous
        self._set(session, property_id, _Entry(saved=target, state=EntryState.PENDING))

        try:
            await self._store.set_saved(session.user_id, property_id, target)
        except ToggleConfirmationFailure as exc:
            return self._rollback(session, property_id, previous, exc)
        except TRANSIENT_ERRORS as exc:
            failure = ToggleConfirmationFailure("Favorite update timed out")
            failure.__cause__ = exc
            return self._rollback(session, property_id, previous, failure)
        except BaseException:
            # Cancelled or crashed mid-confirmation: never leave the flip pending.
            self._set(session, property_id, _Entry(saved=previous))
            raise

        self._set(session, property_id, _Entry(saved=target))
        return ToggleOutcome(status=OutcomeStatus.OK, property_id=property_id, is_favorite=target)

    def _rollback(
        self,
        session: UserSession,
        property_id: str,
        previous: bool,
        exc: ToggleConfirmationFailure,
    ) -> ToggleOutcome:
        self._set(session, property_id, _Entry(saved=previous))
        logger.warning("Rolled back favorite %s for %s: %s", property_id, session.user_id, exc)
        return ToggleOutcome(
            status=OutcomeStatus.FAILED,
            property_id=property_id,
            is_favorite=previous,
            error=exc.to_info(),
        )

    def _set(self, session: UserSession, property_id: str, entry: _Entry) -> None:
        # load() may swap the per-user dict while a confirmation is outstanding.
        self._entries.setdefault(session.user_id, {})[property_id] = entry

    def is_favorite(self, session: UserSession, property_id: str) -> bool:
        entry = self._entries.get(session.user_id, {}).get(property_id)
        return bool(entry and entry.saved)

    def is_pending(self, session: UserSession, property_id: str) -> bool:
        entry = self._entries.get(session.user_id, {}).get(property_id)
        return bool(entry and entry.state is EntryState.PENDING)

    def favorite_ids(self, session: UserSession) -> frozenset[str]:
        entries = self._entries.get(session.user_id, {})
        return frozenset(pid for pid, entry in entries.items() if entry.saved)

"""In-memory credential and session storage with optional idle expiry."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..core.config import settings
from ..schemas.session import UserSession

TOKEN_KEY = "userToken"
USER_DATA_KEY = "userData"


@dataclass
class _Entry:
    value: Any
    last_seen: float


class CredentialStore:
    """Opaque key-value store holding the auth token and user data.

    Entries persist until deleted unless an idle TTL is configured, in which
    case an entry untouched for ``ttl_seconds`` is evicted.
    """

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}

    def get(self, key: str) -> Optional[Any]:
        self._evict_expired()
        entry = self._entries.get(key)
        if not entry:
            return None
        entry.last_seen = self._clock()
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._evict_expired()
        self._entries[key] = _Entry(value=value, last_seen=self._clock())

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def save_session(self, session: UserSession) -> None:
        """Persist the signed-in user's token and profile."""

        self.set(TOKEN_KEY, session.token)
        self.set(user_data_key(session.user_id), session)
        self.set(USER_DATA_KEY, session.user_id)

    def load_session(self) -> Optional[UserSession]:
        """Restore the current session, if its token is still present."""

        token = self.get(TOKEN_KEY)
        user_id = self.get(USER_DATA_KEY)
        if not token or not user_id:
            return None
        session = self.get(user_data_key(user_id))
        if session is None or session.token != token:
            return None
        return session

    def update_profile(
        self,
        session: UserSession,
        *,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
    ) -> UserSession:
        """Store edited contact details; identity, role and token are kept."""

        changes = {
            key: value
            for key, value in {"name": name, "email": email, "phone": phone}.items()
            if value is not None
        }
        stored = self.get(user_data_key(session.user_id)) or session
        updated = stored.model_copy(update=changes)
        self.set(user_data_key(session.user_id), updated)
        return updated

    def clear_session(self) -> None:
        user_id = self.get(USER_DATA_KEY)
        self.delete(TOKEN_KEY)
        self.delete(USER_DATA_KEY)
        if user_id:
            self.delete(user_data_key(user_id))

    def _evict_expired(self) -> None:
        if self._ttl is None:
            return
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now - entry.last_seen > self._ttl]
        for key in expired:
            self._entries.pop(key, None)


def user_data_key(user_id: str) -> str:
    return f"{USER_DATA_KEY}:{user_id}"

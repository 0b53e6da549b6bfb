"""Database engine and session management."""
from __future__ import annotations

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..core.config import settings


@lru_cache
def get_engine() -> AsyncEngine:
    """Create the async engine on first use."""

    return create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)


@lru_cache
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the shared session factory bound to the engine."""

    return async_sessionmaker(get_engine(), expire_on_commit=False, class_=AsyncSession)

"""Process-wide async engine and session factory for the listing database."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from listing_engine.config import Settings, get_settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Return the shared engine, creating it from ``settings`` on first use."""

    global _engine
    if _engine is None:
        database_url = (settings or get_settings()).database_url
        _engine = create_async_engine(database_url, pool_pre_ping=True)
    return _engine


def get_sessionmaker(
    settings: Settings | None = None,
) -> async_sessionmaker[AsyncSession]:
    global _sessionmaker
    if _sessionmaker is None:
        # Records are read after commit; expiring them would force reloads.
        _sessionmaker = async_sessionmaker(
            get_engine(settings), expire_on_commit=False
        )
    return _sessionmaker


@asynccontextmanager
async def session_context() -> AsyncIterator[AsyncSession]:
    """Session for work outside a repository call, e.g. taskiq tasks."""

    async with get_sessionmaker()() as session:
        yield session


async def dispose_engine() -> None:
    """Close pooled connections; called on application shutdown."""

    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None

from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from settings.config import settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_kwargs() -> dict:
    kwargs: dict = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    # SQLite pools reject sizing arguments
    if not settings.is_sqlite:
        kwargs.update(pool_size=settings.DB_POOL_SIZE, max_overflow=settings.DB_MAX_OVERFLOW)
    return kwargs


def get_engine() -> AsyncEngine:
    global _engine, _session_factory
    if _engine is None:
        _engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs())
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        get_engine()
    if _session_factory is None:
        raise RuntimeError("Session factory was not initialised")
    return _session_factory


async def get_async_session() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency for request-scoped AsyncSession.
    Uncommitted work is rolled back when the session closes.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the engine and verify connectivity.
    """
    engine = get_engine()
    async with engine.begin() as conn:
        if settings.DB_CREATE_ALL:
            # Import for side effect: registers every table on the metadata
            from db.models import Base
            import auth.tables  # noqa: F401

            logger.info("Creating database tables")
            await conn.run_sync(Base.metadata.create_all)
        else:
            await conn.run_sync(lambda _: None)


async def close_db() -> None:
    """
    Dispose the engine on application shutdown.
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None

"""PostgreSQL access for mentionlink.

Each unit of work (one contact snapshot read, one mention write, one
review) runs in its own short transaction. A batch persists its mentions
concurrently, so the pool is sized from ``match_max_concurrency``.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import get_settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Create the asyncpg engine on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.api_debug,
            # one connection per in-flight mention write, plus the snapshot read
            pool_size=settings.match_max_concurrency + 1,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
        )
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(
            bind=get_engine(),
            expire_on_commit=False,
            autoflush=False,
        )
    return _sessionmaker


@asynccontextmanager
async def transaction() -> AsyncIterator[AsyncSession]:
    """Run one unit of work: commit on success, roll back on any error.

    Usage:
        async with transaction() as session:
            await session.execute(query, params)
    """
    async with get_sessionmaker().begin() as session:
        yield session


async def ping() -> None:
    """Round-trip to the database; raises if it is unreachable."""
    async with transaction() as session:
        await session.execute(text("SELECT 1"))


async def dispose_engine() -> None:
    """Close pooled connections (application shutdown)."""
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None

"""
Gallery Backend — Database Engine & Session Management
=======================================================

What:  Async SQLAlchemy engine construction, session factory, declarative
       base, and the startup connectivity probe.
Why:   Centralizes all database connection logic in one place.
How:   Unlike a module-level engine, the engine here is built on demand by
       the storage mode selector, because the process may run without any
       database at all (in-memory fallback mode).
Who:   Used by services/storage_mode.py and the SQL store backends.
When:  Engine is built once at startup; sessions are opened per store call.

Connection Pooling Strategy:
    pool_size / max_overflow / pool_pre_ping come from settings.
    pool_recycle=3600 recycles connections every hour.
    SQLite URLs (used by the test-suite) skip the pool arguments.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from gallery.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared metadata
    (used by create_all at startup and by Alembic for migrations).
    """
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database URL.

    Creating an engine does not connect; the first connection is made by
    probe_database().
    """
    url = settings.database_url
    kwargs = {"echo": settings.log_level == "DEBUG"}

    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )

    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory shared by the SQL stores.

    expire_on_commit=False: store methods read attributes after commit to
    build their return records; expiring would trigger a reload.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def probe_database(engine: AsyncEngine) -> None:
    """
    Verify connectivity and make sure the schema exists.

    Raises whatever the driver raises on failure (connection refused, auth
    failure, unknown host, ...). The caller decides what that means.
    """
    # Import models so their tables are registered on Base.metadata
    from gallery.models import image, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    Gracefully closes all connections in the pool.

    Called during application shutdown, and after a failed probe so the
    half-built pool does not linger.
    """
    await engine.dispose()
    logger.info("Database engine disposed")

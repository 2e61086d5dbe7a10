"""
ParkShare Backend — Database Handle
=====================================

What:  Async SQLAlchemy engine + session factory wrapped in an explicit
       `Database` handle, and the declarative `Base` for all models.
How:   The application factory owns one `Database` instance. It is created
       at startup (or injected, e.g. by tests), stored on `app.state`, and
       disposed at shutdown. Request handlers reach it through the
       dependencies in parkshare/dependencies.py; nothing opens connections
       at import time.

Connection Pooling:
    pool_size / max_overflow come from settings (defaults 20 + 10).
    pool_pre_ping validates connections before use.
    pool_recycle=3600 recycles connections every hour.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from parkshare.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic reads for
    migrations.
    """
    pass


class Database:
    """
    Store handle: one engine, one session factory.

    Lifecycle:
        1. Constructed once per process (lifespan startup or test setup)
        2. `session()` hands out a unit-of-work per caller
        3. `dispose()` closes every pooled connection at shutdown
    """

    def __init__(self, url: str, **engine_options: Any):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_options)
        # expire_on_commit=False: attributes stay readable after commit
        # while the response is being built.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the handle from application settings."""
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
            echo=settings.log_level == "DEBUG",
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provide a session that commits on success and rolls back on error.

        How it works:
            1. Creates a new session from the factory
            2. Yields it to the caller
            3. On success: commits the transaction
            4. On error: rolls back and re-raises for the global handlers
            5. Always: closes the session (returns connection to pool)

        Example:
            async with database.session() as db:
                result = await db.execute(select(User))
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def ping(self) -> bool:
        """Run `SELECT 1`; used by the health check."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close all connections in the pool."""
        await self.engine.dispose()

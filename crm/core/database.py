"""
Database connection.

The engine and session factory are built once in the application lifespan
and stored on ``app.state.database``. Request handlers receive a session
through the ``get_db`` dependency.
"""

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from crm.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

Base = declarative_base()


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless the pragma is on for each connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Database:
    """Owns the engine and the session factory for the life of the process."""

    def __init__(self, url: str, echo: bool = False):
        if not url:
            raise ConfigurationError("DATABASE_URL is not set")
        self.engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        if self.engine.dialect.name == "sqlite":
            enable_sqlite_foreign_keys(self.engine)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create all tables (local development only; use Alembic elsewhere)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the process-wide engine."""
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        raise ConfigurationError("DATABASE_URL is not set")
    async with database.sessionmaker() as session:
        yield session

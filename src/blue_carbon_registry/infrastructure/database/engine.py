"""Async database engine and session management.

Provides:
    - Database: an explicitly constructed persistence handle wrapping the
      SQLAlchemy async engine and its session factory.
    - Database.session(): one transaction per lifecycle operation; committed
      on success, rolled back on error.

Nothing connects at import time. The FastAPI lifespan builds a Database from
settings on startup, stores it on ``app.state.db`` and disposes it on shutdown.

Usage:
    db = Database.from_settings(get_settings())
    await db.create_all()
    async with db.session() as session:
        ...
    await db.dispose()
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from blue_carbon_registry.infrastructure.database.orm_models import Base
from blue_carbon_registry.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from blue_carbon_registry.config import Settings

logger = get_logger(__name__)


class Database:
    """Persistence handle: engine + session factory with an explicit lifecycle."""

    def __init__(self, url: str, echo: bool = False, **engine_kwargs: Any) -> None:
        if url.startswith("sqlite"):
            # A single shared connection keeps an in-memory database alive
            # across sessions.
            engine_kwargs.setdefault("poolclass", StaticPool)
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.url = url
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("database.engine_created", dialect=self.engine.dialect.name)

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        """Build a Database using the pool options from configuration."""
        if settings.is_sqlite:
            return cls(settings.database_url, echo=settings.db_echo_sql)
        return cls(
            settings.database_url,
            echo=settings.db_echo_sql,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session bound to one transaction.

        The session is committed on success or rolled back on error.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create tables if they don't exist (development and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database.tables_created")

    async def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Dispose of the engine's connection pool."""
        await self.engine.dispose()
        logger.info("database.engine_disposed")

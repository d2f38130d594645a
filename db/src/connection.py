"""
Database connection management.

Wraps the SQLAlchemy async engine and session factory. One DatabaseManager is
created per application (see tavern.api.app.create_app) and handed to the
repositories that need it.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from .base import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the async engine and hands out sessions."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        pool_timeout: float = 2.0,
        echo: bool = False,
    ):
        self.database_url = database_url
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("DatabaseManager.initialize() has not been called")
        return self._engine

    def initialize(self) -> None:
        """Create the engine and session factory (idempotent)."""
        if self._engine is not None:
            return

        if self.is_sqlite:
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in self.database_url or self.database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
                # In-memory databases exist per connection; share a single one.
                kwargs["poolclass"] = StaticPool
        else:
            kwargs = {
                "pool_size": self.pool_size,
                "pool_timeout": self.pool_timeout,
                "pool_pre_ping": True,
            }

        self._engine = create_async_engine(self.database_url, echo=self.echo, **kwargs)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.info("Database engine initialized (%s)", self._safe_url())

    def _safe_url(self) -> str:
        """Database URL with any password masked, for logging."""
        if "@" not in self.database_url:
            return self.database_url
        scheme, rest = self.database_url.split("://", 1)
        host = rest.split("@", 1)[1]
        return f"{scheme}://***@{host}"

    async def create_tables(self) -> None:
        """Create all tables registered on Base.metadata.

        Model modules must already be imported so their tables are registered.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    async def test_connection(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Database connection test failed: %s", e)
            return False

    @asynccontextmanager
    async def get_async_session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; rolls back on error, always closes."""
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager.initialize() has not been called")
        session = self._session_factory()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database engine disposed")

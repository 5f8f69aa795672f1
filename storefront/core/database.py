"""
Async SQLAlchemy connection pool and database session management.

This module provides a singleton connection pool manager for async SQLAlchemy operations.
Repositories never reach for it implicitly: callers read the session maker from
here once and pass it into a ``ModelHandle``.

Key Features:
    - Singleton pattern for global connection pool management
    - Async-only operations (no blocking database calls)
    - Connection pool with configurable size and overflow
    - Pre-ping health checks to avoid stale connections
    - Automatic rollback on exceptions
    - Graceful shutdown with connection cleanup

Usage:
    # Initialize once at process startup
    config = DatabaseConfig(...)
    await AsyncDBPool.init(config)

    # Bind a model to the pool
    handle = ModelHandle(Product, AsyncDBPool.get_session_maker())

    # Cleanup at shutdown
    await AsyncDBPool.dispose()
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront.main_config import DatabaseConfig

logger = structlog.get_logger(__name__)


class AsyncDBPool:
    """Async-only SQLAlchemy engine + session manager.

    Usage:
        await AsyncDBPool.init(DatabaseConfig())

        async with AsyncDBPool.get_session() as session:
            result = await session.execute(select(Product))

        await AsyncDBPool.dispose()
    """

    _engine: AsyncEngine | None = None
    _maker: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    async def init(
        cls,
        config: DatabaseConfig,
    ) -> None:
        """Initialize async engine and sessionmaker.

        Args:
            config: DatabaseConfig instance with credentials and pool settings
        """
        if cls._engine is not None:
            return  # already initialized

        engine_kwargs: dict[str, Any] = {"echo": config.echo}
        if not config.is_sqlite:
            engine_kwargs.update(
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_timeout=config.pool_timeout,
                pool_recycle=config.pool_recycle,
                pool_pre_ping=config.pool_pre_ping,
            )

        cls._engine = create_async_engine(config.url, **engine_kwargs)
        cls._maker = async_sessionmaker(cls._engine, expire_on_commit=False, class_=AsyncSession)
        logger.info("database_pool_initialized", dialect=cls._engine.dialect.name)

    @classmethod
    async def dispose(cls) -> None:
        """Dispose engine and clear session maker.

        Should be called during shutdown to cleanly close all database connections.
        """
        if cls._engine is not None:
            await cls._engine.dispose()
            cls._engine = None
            cls._maker = None
            logger.info("database_pool_disposed")

    @classmethod
    def get_session_maker(cls) -> async_sessionmaker[AsyncSession]:
        """Return the session factory that model handles are bound to.

        Raises:
            RuntimeError: If pool not initialized
        """
        if cls._maker is None:
            raise RuntimeError("AsyncDBPool not initialized. Call await AsyncDBPool.init() first.")
        return cls._maker

    @classmethod
    async def create_all(cls, metadata: MetaData) -> None:
        """Create every table registered on ``metadata`` (bootstrap/tests)."""
        if cls._engine is None:
            raise RuntimeError("AsyncDBPool not initialized. Call await AsyncDBPool.init() first.")
        async with cls._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncIterator[AsyncSession]:
        """Yield a session; rollback on exceptions.

        Usage:
            async with AsyncDBPool.get_session() as session:
                await session.execute(...)
                await session.commit()

        Raises:
            RuntimeError: If pool not initialized
        """
        async with cls.get_session_maker()() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

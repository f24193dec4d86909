"""Async SQLAlchemy 2.0 database setup."""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


@lru_cache
def get_engine() -> AsyncEngine:
    """Create the process-wide async engine and its bounded connection pool.

    Acquisition waits at most ``db_pool_timeout_seconds`` for a free
    connection; every statement is bounded by ``db_command_timeout_seconds``.
    """
    settings = get_settings()
    engine_kwargs: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout_seconds,
        "pool_recycle": settings.db_pool_recycle_seconds,
    }
    if settings.database_url.startswith("postgresql+asyncpg"):
        engine_kwargs["connect_args"] = {
            "command_timeout": settings.db_command_timeout_seconds,
        }

    engine: AsyncEngine = create_async_engine(settings.database_url, **engine_kwargs)
    return engine


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Create async session maker bound to the shared engine."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    The session's connection goes back to the pool on every exit path.

    Yields:
        AsyncSession: Database session that auto-commits on success.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_schema() -> bool:
    """Create missing tables and indexes.

    Existing tables are left untouched. Failures are logged, not raised, so
    the API can start while the database is still coming up.

    Returns:
        True if the schema is in place.
    """
    # Register models on Base.metadata.
    import app.features.data_platform.models  # noqa: F401

    try:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error(
            "database.schema_init_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False

    logger.info("database.schema_initialized")
    return True


async def check_connection() -> bool:
    """Run a round-trip against the database.

    Returns:
        True if the database answered.
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(
            "database.connection_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False

    logger.info("database.connection_ok")
    return True


async def dispose_engine() -> None:
    """Close pooled connections on shutdown."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()

"""Fixtures for row store integration tests.

Note: The db_session fixture is duplicated from tests/conftest.py because
feature tests do not have the root tests/ directory in their path.
"""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.core.database import Base
from app.features.data_platform.models import SheetRow

# Batch ids at or above this value belong to tests and are removed afterwards.
TEST_BATCH_ID_FLOOR = 900_000


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for integration tests.

    Creates the schema if missing and deletes test batches afterwards.
    Requires PostgreSQL to be running.
    """
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with async_session_maker() as cleanup_session:
        await cleanup_session.execute(
            delete(SheetRow).where(SheetRow.batch_id >= TEST_BATCH_ID_FLOOR)
        )
        await cleanup_session.commit()

    await engine.dispose()

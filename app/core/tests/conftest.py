"""Fixtures for core infrastructure tests."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.main import app


@pytest.fixture
def db_session() -> AsyncMock:
    """Mocked session; SELECT 1 succeeds unless a side effect is set."""
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
async def client(db_session: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client with the database session mocked out."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()

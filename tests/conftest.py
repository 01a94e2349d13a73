"""
Pytest configuration and shared fixtures for gallery-api tests.

This module provides:
- Database fixtures (per-test SQLite file)
- A fake media host that records uploads and deletions
- Service and API client fixtures
"""

import os
from pathlib import Path
from typing import AsyncGenerator

# Must be set before gallery_api.core.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.pop("ADMIN_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from gallery_api.main import app
from gallery_api.db.base import Base
from gallery_api.db.session import get_session
from gallery_api.media import get_media_host
from gallery_api.services.gallery_service import GalleryService
from tests.fakes import FakeMediaHost


# Minimal valid PNG (1x1 pixel)
PNG_DATA_URI = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


# ============================================================================
# Database fixtures
# ============================================================================


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh database file per test with the schema created.

    NullPool keeps connections from being shared across event loops.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ============================================================================
# Service fixtures
# ============================================================================


@pytest.fixture
def media_host() -> FakeMediaHost:
    return FakeMediaHost()


@pytest.fixture
def service(db_session: AsyncSession, media_host: FakeMediaHost) -> GalleryService:
    return GalleryService(session=db_session, media_host=media_host)


# ============================================================================
# API client fixtures
# ============================================================================


@pytest.fixture
async def async_client(session_factory, media_host: FakeMediaHost) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with a per-request session on the test database."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_media_host] = lambda: media_host

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    """Synchronous client running the real lifespan (in-memory database).

    Use for endpoints that do not touch gallery data.
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture
def png_data_uri() -> str:
    return PNG_DATA_URI

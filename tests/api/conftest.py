"""Shared fixtures for API tests.

The application runs against a throwaway SQLite file. Connections are not
pooled, so the test client's event loop never reuses a connection opened
elsewhere.
"""

import asyncio
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.catalog.models import Brand, Category, Occasion
from app.infrastructure.database import build_engine, create_tables, get_session
from app.main import app
from tests.conftest import BRANDS, CATEGORIES, OCCASIONS


async def _prepare(factory: async_sessionmaker[AsyncSession]) -> None:
    async with factory() as session:
        session.add_all([Brand(id=i, name=n) for i, n in BRANDS.items()])
        session.add_all([Category(id=i, name=n) for i, n in CATEGORIES.items()])
        session.add_all([Occasion(id=t, name=n) for t, n in OCCASIONS.items()])
        await session.commit()


@pytest.fixture
def client(tmp_path: Path) -> Generator[TestClient, None, None]:
    """Test client whose sessions come from a seeded test database."""
    test_engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        poolclass=NullPool,
    )
    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    asyncio.run(create_tables(test_engine))
    asyncio.run(_prepare(factory))

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_session, None)

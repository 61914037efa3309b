"""Shared fixtures for catalog tests.

Each test gets its own SQLite database file with foreign keys enforced.
"""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.catalog.models import Brand, Category, Occasion
from app.catalog.service import CatalogService
from app.infrastructure.database import build_engine, create_tables

BRANDS = {1: "Acme", 5: "Contoso", 15: "Northwind", 21: "Fabrikam"}
CATEGORIES = {1: "Shirts", 2: "Shoes", 3: "Jackets"}
OCCASIONS = {"casual": "Casual", "party": "Party", "wedding": "Wedding", "a_b": "Odd token"}


class RecordingInvalidator:
    """Invalidation sink that remembers every stale path."""

    def __init__(self) -> None:
        self.paths: list[str] = []

    def mark_stale(self, path: str) -> None:
        self.paths.append(path)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine with all tables."""
    engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        poolclass=NullPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def reference_data(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Insert brands, categories and occasions."""
    async with session_factory() as session:
        session.add_all([Brand(id=i, name=n) for i, n in BRANDS.items()])
        session.add_all([Category(id=i, name=n) for i, n in CATEGORIES.items()])
        session.add_all([Occasion(id=t, name=n) for t, n in OCCASIONS.items()])
        await session.commit()


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
    reference_data: None,
) -> AsyncGenerator[AsyncSession, None]:
    """Session on a database that already holds the reference data."""
    async with session_factory() as session:
        yield session


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def invalidator() -> RecordingInvalidator:
    """Invalidation sink that records calls."""
    return RecordingInvalidator()


@pytest.fixture
def service(session: AsyncSession, invalidator: RecordingInvalidator) -> CatalogService:
    """Catalog service bound to the test session."""
    return CatalogService(session, invalidator=invalidator, request_id="test-request")


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """Build a valid product payload, overriding selected fields.

    ``brand_ids``, ``category_ids`` and ``occasions`` are shortcuts for the
    option lists the picker widgets send.
    """

    def _make(
        brand_ids: list[int] | None = None,
        category_ids: list[int] | None = None,
        occasions: list[str] | None = None,
        **overrides: Any,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": "Linen Shirt",
            "description": "Breathable summer shirt",
            "rating": 4.5,
            "old_price": 100,
            "discount": 20,
            "colors": "white",
            "gender": "men",
            "brands": [
                {"value": b, "label": BRANDS.get(b, str(b))} for b in (brand_ids or [5])
            ],
            "occasion": [
                {"value": o, "label": OCCASIONS.get(o, o)} for o in (occasions or ["casual"])
            ],
            "categories": [
                {"value": c, "label": CATEGORIES.get(c, str(c))}
                for c in (category_ids or [1])
            ],
            "image_url": "/images/linen-shirt.png",
        }
        payload.update(overrides)
        return payload

    return _make

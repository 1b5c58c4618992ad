"""Shared fixtures: per-test SQLite database, seeded inventory, API client."""

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable

# Settings are read at import time; point them at a throwaway database
# before anything from shelfmark is imported.
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault(
    "DB_URL",
    f"sqlite+aiosqlite:///{Path(tempfile.gettempdir()) / 'shelfmark-test.db'}",
)

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from shelfmark.api.deps import get_db
from shelfmark.infra.database import create_schema
from shelfmark.main import app
from shelfmark.models import Barcode, SizeBand

SeedCodes = Callable[..., Awaitable[list[Barcode]]]


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite file per test, schema created through the migration step."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'shelfmark.db'}",
        poolclass=NullPool,
    )
    await create_schema(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as sess:
        yield sess


@pytest_asyncio.fixture
async def bands(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, SizeBand]:
    """Four disjoint width bands (mm).

    gk: 100-129, i: 130-149, ik: 150-169, rk: 170 and up.
    """
    definitions = [
        SizeBand(name="gk", min_width=100, max_width=129, height_threshold=200, equal_heights=[205, 210, 215]),
        SizeBand(name="i", min_width=130, max_width=149, height_threshold=200, equal_heights=[]),
        SizeBand(name="ik", min_width=150, max_width=169, height_threshold=200, equal_heights=[]),
        SizeBand(name="rk", min_width=170, max_width=None, height_threshold=230, equal_heights=[240]),
    ]
    async with session_factory() as sess:
        sess.add_all(definitions)
        await sess.commit()
    return {band.name: band for band in definitions}


@pytest.fixture
def seed_codes(session_factory: async_sessionmaker[AsyncSession]) -> SeedCodes:
    """Insert AVAILABLE labels; `codes` items are a code or a (code, rank) pair."""

    async def _seed(*codes: str | tuple[str, int | None], size_band_id: int | None = None) -> list[Barcode]:
        created = []
        async with session_factory() as sess:
            for item in codes:
                code, rank = item if isinstance(item, tuple) else (item, None)
                barcode = Barcode(code=code, rank_in_series=rank, size_band_id=size_band_id)
                sess.add(barcode)
                created.append(barcode)
            await sess.commit()
        return created

    return _seed


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database injected."""

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as sess:
            try:
                yield sess
                await sess.commit()
            except Exception:
                await sess.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()

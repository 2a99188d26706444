"""Test fixtures for the vaccination engine."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import date
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ["OVERDUE_SWEEP_ENABLED"] = "false"
os.environ["SHELTER_TIMEZONE"] = "America/Sao_Paulo"

from vaxcycle.api import deps
from vaxcycle.core.clock import FixedClock
from vaxcycle.core.config import get_settings
from vaxcycle.db.base import Base
from vaxcycle.db.protocol_store import ProtocolStore
from vaxcycle.db.session import dispose_engine, get_sessionmaker
from vaxcycle.main import app
from vaxcycle.models import Animal, Vaccine

SHELTER_TZ = ZoneInfo("America/Sao_Paulo")
TODAY = date(2024, 3, 1)


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest.fixture()
def clock() -> FixedClock:
    """Clock pinned to noon of ``TODAY`` in the shelter time zone."""
    return FixedClock.on(TODAY, SHELTER_TZ)


@pytest_asyncio.fixture()
async def store(reset_database: None, db_url: str) -> ProtocolStore:
    return ProtocolStore(get_sessionmaker(db_url))


@pytest_asyncio.fixture()
async def catalog(reset_database: None, db_url: str) -> dict[str, object]:
    """Seed two animals and three vaccines; returns their ids by name."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        animals = {
            "rex": Animal(name="Rex", species="dog"),
            "mia": Animal(name="Mia", species="cat"),
        }
        vaccines = {
            "v10": Vaccine(name="V10", manufacturer="Zoetis"),
            "rabies": Vaccine(name="Rabies", manufacturer="Boehringer"),
            "giardia": Vaccine(name="Giardia"),
        }
        session.add_all([*animals.values(), *vaccines.values()])
        await session.commit()
        return {
            **{key: animal.id for key, animal in animals.items()},
            **{key: vaccine.id for key, vaccine in vaccines.items()},
        }


@pytest_asyncio.fixture()
async def app_context(
    catalog: dict[str, object], clock: FixedClock
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client with a pinned clock and the seeded catalog."""
    app.dependency_overrides[deps.get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context: dict[str, object] = {**catalog, "client": client, "clock": clock}
        try:
            yield context
        finally:
            app.dependency_overrides.clear()

"""
Shared fixtures.

Every test gets its own in-memory SQLite database, so tests never see each
other's rows. Services are called directly with an ``AsyncSession``; the HTTP
tests go through the FastAPI app with ``get_db`` pointed at the same database.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from household_ledger.db.base import metadata
from household_ledger.db.session import get_db
from household_ledger.services.household_services import add_member, create_household

from helpers import unwrap


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    from household_ledger.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def household(db):
    return unwrap(await create_household(db, "Home"))


@pytest.fixture
async def members(db, household):
    alice = unwrap(await add_member(db, household.id, "Alice"))
    bob = unwrap(await add_member(db, household.id, "Bob"))
    return alice, bob

"""
Pytest fixtures for test database, client, and authentication.

Every test gets a fresh SQLite database file (override with
TEST_DATABASE_URL to run against PostgreSQL). The HTTP client opens one
session per request, exactly like the real get_db dependency, so the
commit/rollback behaviour of the API is exercised as in production.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token, hash_password
from app.models.user import User
from app.models.trip import Trip
from app.services import token_service

TEST_PASSWORD = "testpassword123"


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create all tables in a throwaway database and hand out a session factory."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, email: str, name: str, role: str = "client") -> User:
    user = User(
        name=name,
        email=email,
        role=role,
        hashed_password=hash_password(TEST_PASSWORD),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A client account."""
    return await _create_user(db_session, "client@example.com", "Test Client")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "other@example.com", "Other Client")


@pytest_asyncio.fixture
async def third_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "third@example.com", "Third Client")


@pytest_asyncio.fixture
async def agent_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "agent@example.com", "Test Agent", role="agent")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@example.com", "Test Admin", role="admin")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    """Authorization headers with Bearer token."""
    return _headers(test_user)


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    return _headers(other_user)


@pytest_asyncio.fixture
async def third_headers(third_user: User) -> dict:
    return _headers(third_user)


@pytest_asyncio.fixture
async def agent_headers(agent_user: User) -> dict:
    return _headers(agent_user)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return _headers(admin_user)


@pytest_asyncio.fixture
async def grant(db_session: AsyncSession):
    """Credit tokens to a user straight through the ledger."""

    async def _grant(user: User, amount: int) -> None:
        await token_service.grant_tokens(db_session, user.id, amount, "test credit")
        await db_session.commit()

    return _grant


@pytest_asyncio.fixture
async def test_trip(db_session: AsyncSession, agent_user: User) -> Trip:
    """An active trip with 10 seats at 100.00 per seat."""
    trip = Trip(
        agent_id=agent_user.id,
        title="Alpine Escape",
        description="A week in the mountains",
        price=Decimal("100.00"),
        max_seats=10,
        available_seats=10,
        location="Zermatt, Switzerland",
        start_date=date.today() + timedelta(days=30),
        end_date=date.today() + timedelta(days=37),
        status="active",
    )
    db_session.add(trip)
    await db_session.commit()
    await db_session.refresh(trip)
    return trip


@pytest_asyncio.fixture
async def small_trip(db_session: AsyncSession, agent_user: User) -> Trip:
    """An active trip with a single seat left."""
    trip = Trip(
        agent_id=agent_user.id,
        title="Private Island Day",
        price=Decimal("250.50"),
        max_seats=4,
        available_seats=1,
        location="Koh Rong, Cambodia",
        start_date=date.today() + timedelta(days=10),
        end_date=date.today() + timedelta(days=11),
        status="active",
    )
    db_session.add(trip)
    await db_session.commit()
    await db_session.refresh(trip)
    return trip

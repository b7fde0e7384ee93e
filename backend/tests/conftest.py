"""
Pytest fixtures for test database, client, and authentication.

Every test gets a fresh in-memory SQLite database, so no server is needed.
Environment overrides must be in place before the application is imported.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("QR_CODE_SECRET", "test-qr-secret")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from attendance.main import app
from attendance.db.base import Base
from attendance.db.session import commit, get_db
from attendance.core.security import create_access_token, hash_password
from attendance.models import Event, Organization
from attendance.services.interfaces.secrets import StaticSecretProvider
from attendance.services.qr_tokens import QrTokenService

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_QR_SECRET = os.environ["QR_CODE_SECRET"]

# Venue shared by the event fixtures
VENUE_LAT = 40.7128
VENUE_LNG = -74.0060


def _configure_sqlite(engine) -> None:
    """Foreign keys on, and SAVEPOINT support for aiosqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables in a fresh database and yield a session bound to it."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _configure_sqlite(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session.

    Successful requests commit it, running after-commit callbacks as
    `get_db` does.
    """

    async def override_get_db():
        yield db_session
        await commit(db_session)

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_organization(db_session: AsyncSession) -> Organization:
    organization = Organization(
        username="testorg",
        name="Test Organization",
        hashed_password=hash_password("testpassword123"),
    )
    db_session.add(organization)
    await db_session.commit()
    await db_session.refresh(organization)
    return organization


@pytest_asyncio.fixture
async def other_organization(db_session: AsyncSession) -> Organization:
    organization = Organization(
        username="otherorg",
        name="Other Organization",
        hashed_password=hash_password("otherpassword123"),
    )
    db_session.add(organization)
    await db_session.commit()
    await db_session.refresh(organization)
    return organization


@pytest_asyncio.fixture
async def auth_headers(test_organization: Organization) -> dict:
    """Authorization headers with Bearer token."""
    token = create_access_token(data={"sub": test_organization.id})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def other_auth_headers(other_organization: Organization) -> dict:
    token = create_access_token(data={"sub": other_organization.id})
    return {"Authorization": f"Bearer {token}"}


async def _create_event(db_session: AsyncSession, organization: Organization, **overrides) -> Event:
    now = datetime.now(timezone.utc)
    fields = dict(
        organization_id=organization.id,
        title="Weekly Standup",
        start_time=now - timedelta(minutes=10),
        end_time=now + timedelta(hours=1),
        timezone="America/New_York",
        location_address="1 Centre St, New York",
        location_lat=VENUE_LAT,
        location_lng=VENUE_LNG,
        location_radius_meters=50,
        registration_window_before_minutes=30,
        registration_window_after_minutes=30,
    )
    fields.update(overrides)
    created = Event(**fields)
    db_session.add(created)
    await db_session.commit()
    await db_session.refresh(created)
    return created


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, test_organization: Organization) -> Event:
    """An event whose registration window is open right now."""
    return await _create_event(db_session, test_organization)


@pytest_asyncio.fixture
async def upcoming_event(db_session: AsyncSession, test_organization: Organization) -> Event:
    """An event whose registration window opens in about two hours."""
    now = datetime.now(timezone.utc)
    return await _create_event(
        db_session,
        test_organization,
        title="Evening Meetup",
        start_time=now + timedelta(hours=2, minutes=30),
        end_time=now + timedelta(hours=4),
    )


@pytest.fixture
def qr_tokens() -> QrTokenService:
    """Token service sharing the application's secret."""
    return QrTokenService(StaticSecretProvider(TEST_QR_SECRET))

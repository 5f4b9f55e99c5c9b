"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production metadata is created as-is;
SQLite foreign keys are switched on so ``ON DELETE CASCADE`` behaves like
PostgreSQL.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from coachlink.domain.enums import UserRole
from coachlink.infrastructure.database import Base
from coachlink.infrastructure.models import DriverModel, UserModel, VehicleModel
from coachlink.infrastructure.security import create_access_token, hash_password


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def future(hours: int = 24) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


class RecordingPublisher:
    """Stands in for the broadcaster; keeps every published event in order."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    async def publish(self, kind, payload) -> int:
        self.events.append((str(getattr(kind, "value", kind)), payload))
        return 1

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.events]


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def reference_data(session_factory) -> dict:
    """Two drivers and two vehicles (capacities 50 and 10)."""
    async with session_factory() as session:
        drivers = [
            DriverModel(name="John Doe", phone="123-456-7890"),
            DriverModel(name="Jane Smith", phone="234-567-8901"),
        ]
        vehicles = [
            VehicleModel(plate="ABC123", capacity=50),
            VehicleModel(plate="MINI01", capacity=10),
        ]
        session.add_all(drivers + vehicles)
        await session.commit()
        return {
            "driver_ids": [d.id for d in drivers],
            "bus_id": vehicles[0].id,
            "minibus_id": vehicles[1].id,
        }


@pytest_asyncio.fixture
async def users(session_factory) -> dict:
    async with session_factory() as session:
        coordinator = UserModel(
            username="coordinator",
            hashed_password=hash_password("password"),
            role=UserRole.COORDINATOR,
            full_name="System Coordinator",
        )
        viewer = UserModel(
            username="viewer",
            hashed_password=hash_password("viewer123"),
            role=UserRole.VIEWER,
        )
        inactive = UserModel(
            username="retired",
            hashed_password=hash_password("retired123"),
            role=UserRole.COORDINATOR,
            is_active=False,
        )
        session.add_all([coordinator, viewer, inactive])
        await session.commit()
        return {"coordinator": coordinator.id, "viewer": viewer.id}


@pytest.fixture
def app(session_factory):
    from coachlink.api.app import create_app
    from coachlink.api.dependencies import get_db

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application = create_app()
    application.dependency_overrides[get_db] = _test_db
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers(role: UserRole, username: str = None) -> dict:
    token = create_access_token(
        {"sub": username or role.value, "user_id": 1, "role": role.value}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def coordinator_headers() -> dict:
    return auth_headers(UserRole.COORDINATOR)


@pytest.fixture
def viewer_headers() -> dict:
    return auth_headers(UserRole.VIEWER)

"""
Concurrency safety tests.

Demonstrates:
1. ``KeyedLock`` serialises holders of the same key and not of different keys.
2. Two transitions racing on one request run one after the other, and their
   events leave in commit order.
3. Racing schedules leave exactly one assignment, whose driver and vehicle
   come from the same call.
"""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from coachlink.api.schemas import RequestCreate
from coachlink.infrastructure.database import Base
from coachlink.infrastructure.locks import KeyedLock
from coachlink.infrastructure.models import AssignmentModel, DriverModel, VehicleModel
from coachlink.services.requests import RequestService
from tests.conftest import RecordingPublisher, enable_sqlite_foreign_keys, future


class TestKeyedLock:
    @pytest.mark.asyncio
    async def test_same_key_is_exclusive(self):
        locks = KeyedLock()
        order: list[str] = []

        async def worker(name: str):
            async with locks.hold(7):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]

    @pytest.mark.asyncio
    async def test_different_keys_overlap(self):
        locks = KeyedLock()
        inside = asyncio.Event()

        async def first():
            async with locks.hold(1):
                await asyncio.wait_for(inside.wait(), timeout=1)

        async def second():
            async with locks.hold(2):
                inside.set()

        await asyncio.gather(first(), second())

    @pytest.mark.asyncio
    async def test_entries_are_released(self):
        locks = KeyedLock()
        async with locks.hold("x"):
            assert locks.locked("x")
            assert len(locks) == 1
        assert not locks.locked("x")
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.hold("x"):
                raise RuntimeError("boom")
        assert len(locks) == 0


# ── Racing transitions (file-backed SQLite: one connection per session) ─


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_racing_transitions_are_serialised(file_session_factory):
    publisher = RecordingPublisher()
    locks = KeyedLock()

    async with file_session_factory() as session:
        created = await RequestService(session, publisher, locks).create_request(
            RequestCreate(
                customer_name="Race Test", phone="555-0100", pickup_time=future()
            )
        )
    publisher.events.clear()

    async def move(status: str):
        async with file_session_factory() as session:
            service = RequestService(session, publisher, locks)
            return await service.transition(created.id, status)

    await asyncio.gather(move("approved"), move("rejected"))

    assert publisher.kinds() == [
        "statusChange",
        "requestUpdate",
        "statusChange",
        "requestUpdate",
    ]
    first, second = publisher.events[0][1], publisher.events[2][1]
    assert first["oldStatus"] == "pending"
    assert second["oldStatus"] == first["newStatus"]
    final_status = publisher.events[3][1]["request"]["status"]
    assert final_status == second["newStatus"]


@pytest.mark.asyncio
async def test_racing_schedules_keep_one_consistent_assignment(file_session_factory):
    publisher = RecordingPublisher()
    locks = KeyedLock()

    async with file_session_factory() as session:
        drivers = [
            DriverModel(name="Driver One", phone="555-0001"),
            DriverModel(name="Driver Two", phone="555-0002"),
        ]
        vehicles = [
            VehicleModel(plate="BUS001", capacity=50),
            VehicleModel(plate="BUS002", capacity=50),
        ]
        session.add_all(drivers + vehicles)
        await session.commit()
        created = await RequestService(session, publisher, locks).create_request(
            RequestCreate(
                customer_name="Race Test",
                phone="555-0100",
                pickup_time=future(),
                passengers=20,
            )
        )
    pairs = {drivers[0].id: vehicles[0].id, drivers[1].id: vehicles[1].id}
    publisher.events.clear()

    async def schedule(driver_id: int, vehicle_id: int):
        async with file_session_factory() as session:
            service = RequestService(session, publisher, locks)
            return await service.transition(
                created.id,
                "scheduled",
                driver_id=driver_id,
                vehicle_id=vehicle_id,
                scheduled_time=future(30),
            )

    await asyncio.gather(*(schedule(d, v) for d, v in pairs.items()))

    async with file_session_factory() as session:
        rows = (
            await session.execute(
                select(AssignmentModel).where(AssignmentModel.request_id == created.id)
            )
        ).scalars().all()
    assert len(rows) == 1
    assert pairs[rows[0].driver_id] == rows[0].vehicle_id

    changes = [payload for kind, payload in publisher.events if kind == "statusChange"]
    assert len(changes) == 2
    assert changes[-1]["driverId"] == rows[0].driver_id
    assert changes[-1]["vehicleId"] == rows[0].vehicle_id

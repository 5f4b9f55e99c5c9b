"""Service-level tests for the request lifecycle (event payloads, storage failures)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from coachlink.api.schemas import RequestCreate
from coachlink.domain.enums import RequestStatus
from coachlink.domain.errors import (
    MissingScheduleFields,
    NotFound,
    StorageError,
)
from coachlink.infrastructure.locks import KeyedLock
from coachlink.services.requests import RequestService
from tests.conftest import RecordingPublisher, future


def _service(session, publisher=None):
    return RequestService(session, publisher or RecordingPublisher(), KeyedLock())


async def _create(service: RequestService, passengers=None):
    return await service.create_request(
        RequestCreate(
            customer_name="Service Test",
            phone="555-0100",
            pickup_time=future(),
            passengers=passengers,
        )
    )


@pytest.mark.asyncio
async def test_create_publishes_created(db_session):
    publisher = RecordingPublisher()
    request = await _create(_service(db_session, publisher))

    assert request.status is RequestStatus.PENDING
    assert publisher.kinds() == ["requestUpdate"]
    payload = publisher.events[0][1]
    assert payload["action"] == "created"
    assert payload["request"]["id"] == request.id


@pytest.mark.asyncio
async def test_validation_failure_publishes_nothing(db_session):
    publisher = RecordingPublisher()
    service = _service(db_session, publisher)
    request = await _create(service)
    publisher.events.clear()

    with pytest.raises(MissingScheduleFields):
        await service.transition(request.id, "scheduled", driver_id=1)
    assert publisher.events == []


@pytest.mark.asyncio
async def test_missing_request(db_session):
    with pytest.raises(NotFound):
        await _service(db_session).transition(12345, "approved")


@pytest.mark.asyncio
async def test_storage_failure_is_opaque_and_silent(db_session):
    publisher = RecordingPublisher()
    service = _service(db_session, publisher)
    request = await _create(service)
    publisher.events.clear()

    failure = OperationalError("UPDATE service_requests", {}, Exception("disk I/O error"))
    with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
        with pytest.raises(StorageError) as exc:
            await service.transition(request.id, "approved")

    assert exc.value.message == "The request could not be saved"
    assert "disk" not in exc.value.message
    assert publisher.events == []


@pytest.mark.asyncio
async def test_delete_publishes_snapshot(db_session):
    publisher = RecordingPublisher()
    service = _service(db_session, publisher)
    request = await _create(service, passengers=3)
    publisher.events.clear()

    await service.delete_request(request.id)

    assert publisher.kinds() == ["requestUpdate"]
    payload = publisher.events[0][1]
    assert payload["action"] == "deleted"
    assert payload["request"]["passengers"] == 3
    with pytest.raises(NotFound):
        await service.get_request(request.id)

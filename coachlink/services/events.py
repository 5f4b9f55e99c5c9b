"""Event payloads published after a committed change."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from coachlink.api.schemas import ServiceRequestResponse
from coachlink.domain.entities import ScheduleFields
from coachlink.domain.enums import EventKind, RequestStatus, UpdateAction
from coachlink.infrastructure.models import ServiceRequestModel


class EventPublisher(Protocol):
    """Anything with the broadcaster's ``publish`` (the broadcaster or the relay)."""

    async def publish(self, kind: str, payload: dict[str, Any]) -> int: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def serialize_request(request: ServiceRequestModel) -> dict[str, Any]:
    return ServiceRequestResponse.model_validate(request).model_dump(mode="json")


async def notify_request_update(
    publisher: EventPublisher,
    request: dict[str, Any],
    action: UpdateAction = UpdateAction.UPDATED,
) -> int:
    return await publisher.publish(
        EventKind.REQUEST_UPDATE.value,
        {"action": action.value, "request": request, "timestamp": _now()},
    )


async def notify_status_change(
    publisher: EventPublisher,
    request_id: int,
    old_status: RequestStatus,
    new_status: RequestStatus,
    schedule: Optional[ScheduleFields] = None,
) -> int:
    payload: dict[str, Any] = {
        "requestId": request_id,
        "oldStatus": old_status.value,
        "newStatus": new_status.value,
    }
    if schedule is not None:
        payload["driverId"] = schedule.driver_id
        payload["vehicleId"] = schedule.vehicle_id
        payload["scheduledTime"] = schedule.scheduled_time.isoformat()
    payload["timestamp"] = _now()
    return await publisher.publish(EventKind.STATUS_CHANGE.value, payload)

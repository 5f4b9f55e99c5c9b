"""
Request lifecycle service
=========================

Owns every write to a service request and the events that follow it.

Transition sequence
-------------------
1. Take the per-request in-process lock, then ``SELECT ... FOR UPDATE``.
2. Validate: request exists, status is known, and for ``scheduled`` the
   driver/vehicle/time inputs parse, both rows exist and the vehicle seats
   the passengers.  Nothing is written if any check fails.
3. Upsert the assignment (scheduling only), set status and edited fields,
   commit.
4. Re-read the hydrated request and publish ``statusChange`` then
   ``requestUpdate`` while still holding the lock, so events for one
   request leave in commit order.

A database failure rolls back, is logged, and surfaces as ``StorageError``;
no event is published for it.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coachlink.api.schemas import RequestCreate
from coachlink.domain.entities import (
    ScheduleFields,
    check_capacity,
    parse_schedule_fields,
    parse_status,
)
from coachlink.domain.enums import RequestStatus, UpdateAction
from coachlink.domain.errors import (
    DriverNotFound,
    InvalidStatus,
    NotFound,
    StorageError,
    ValidationError,
    VehicleNotFound,
)
from coachlink.infrastructure.locks import KeyedLock
from coachlink.infrastructure.models import ServiceRequestModel
from coachlink.infrastructure.repositories import (
    AssignmentRepository,
    DriverRepository,
    RequestRepository,
    VehicleRepository,
)
from coachlink.services.events import (
    EventPublisher,
    notify_request_update,
    notify_status_change,
    serialize_request,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"customer_name", "phone", "pickup_location", "dropoff_location", "notes"}
)
MAX_PAGE_SIZE = 100


class RequestService:
    def __init__(
        self,
        session: AsyncSession,
        publisher: EventPublisher,
        locks: KeyedLock,
    ):
        self.session = session
        self.publisher = publisher
        self.locks = locks
        self.requests = RequestRepository(session)
        self.assignments = AssignmentRepository(session)
        self.drivers = DriverRepository(session)
        self.vehicles = VehicleRepository(session)

    # ── Create / read ─────────────────────────────────────────────────

    async def create_request(self, data: RequestCreate) -> ServiceRequestModel:
        if data.pickup_time <= datetime.now(timezone.utc):
            raise ValidationError(
                [{"field": "pickup_time", "message": "Pickup time must be in the future"}]
            )

        request = ServiceRequestModel(
            **data.model_dump(), status=RequestStatus.PENDING
        )
        try:
            await self.requests.create(request)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("Failed to create service request")
            raise StorageError() from None

        created = await self.requests.get_hydrated(request.id)
        logger.info("Service request %d created", created.id)
        await notify_request_update(
            self.publisher, serialize_request(created), UpdateAction.CREATED
        )
        return created

    async def get_request(self, request_id: int) -> ServiceRequestModel:
        request = await self.requests.get_hydrated(request_id)
        if request is None:
            raise NotFound("Service request", request_id)
        return request

    async def list_requests(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> tuple[list[ServiceRequestModel], int]:
        """Newest-first page of requests plus the total matching count."""
        errors = []
        if page < 1:
            errors.append({"field": "page", "message": "Page must be at least 1"})
        if not 1 <= limit <= MAX_PAGE_SIZE:
            errors.append(
                {"field": "limit", "message": f"Limit must be between 1 and {MAX_PAGE_SIZE}"}
            )
        status_filter = None
        if status:
            try:
                status_filter = parse_status(status)
            except InvalidStatus as exc:
                errors.extend(exc.details["errors"])
        if errors:
            raise ValidationError(errors)

        search = search.strip() if search else None
        items = await self.requests.list_page(
            offset=(page - 1) * limit, limit=limit, search=search, status=status_filter
        )
        total = await self.requests.count(search=search, status=status_filter)
        return items, total

    @staticmethod
    def page_count(total: int, limit: int) -> int:
        return math.ceil(total / limit) if total else 0

    # ── Transition ────────────────────────────────────────────────────

    async def transition(
        self,
        request_id: int,
        status: Optional[str] = None,
        *,
        driver_id: Any = None,
        vehicle_id: Any = None,
        scheduled_time: Any = None,
        fields: Optional[dict[str, Any]] = None,
    ) -> ServiceRequestModel:
        """Move a request to ``status`` and/or edit its descriptive fields.

        Without ``status`` this is a plain edit: the status and assignment
        are left alone and only ``requestUpdate`` is published.
        """
        fields = {k: v for k, v in (fields or {}).items() if k in EDITABLE_FIELDS}

        async with self.locks.hold(request_id):
            request = await self.requests.get_for_update(request_id)
            if request is None:
                raise NotFound("Service request", request_id)

            new_status = parse_status(status) if status is not None else None
            schedule: Optional[ScheduleFields] = None
            if new_status is RequestStatus.SCHEDULED:
                schedule = await self._validate_schedule(
                    request, driver_id, vehicle_id, scheduled_time
                )

            old_status = RequestStatus(request.status)
            try:
                if schedule is not None:
                    await self.assignments.upsert(
                        request,
                        driver_id=schedule.driver_id,
                        vehicle_id=schedule.vehicle_id,
                        scheduled_time=schedule.scheduled_time,
                    )
                if new_status is not None:
                    request.status = new_status
                for name, value in fields.items():
                    setattr(request, name, value)
                await self.session.commit()
            except SQLAlchemyError:
                await self.session.rollback()
                logger.exception("Failed to update service request %d", request_id)
                raise StorageError() from None

            updated = await self.requests.get_hydrated(request_id)
            snapshot = serialize_request(updated)

            if new_status is None:
                logger.info("Service request %d edited", request_id)
                await notify_request_update(self.publisher, snapshot)
                return updated

            logger.info(
                "Service request %d: %s -> %s",
                request_id, old_status.value, new_status.value,
            )
            await notify_status_change(
                self.publisher, request_id, old_status, new_status, schedule
            )
            action = (
                UpdateAction.SCHEDULED
                if new_status is RequestStatus.SCHEDULED
                else UpdateAction.UPDATED
            )
            await notify_request_update(self.publisher, snapshot, action)
            return updated

    async def _validate_schedule(
        self,
        request: ServiceRequestModel,
        driver_id: Any,
        vehicle_id: Any,
        scheduled_time: Any,
    ) -> ScheduleFields:
        schedule = parse_schedule_fields(driver_id, vehicle_id, scheduled_time)

        driver = await self.drivers.get_by_id(schedule.driver_id)
        if driver is None:
            raise DriverNotFound(schedule.driver_id)

        vehicle = await self.vehicles.get_by_id(schedule.vehicle_id)
        if vehicle is None:
            raise VehicleNotFound(schedule.vehicle_id)

        check_capacity(request.passengers, vehicle.capacity)
        return schedule

    # ── Delete ────────────────────────────────────────────────────────

    async def delete_request(self, request_id: int) -> None:
        async with self.locks.hold(request_id):
            request = await self.requests.get_for_update(request_id)
            if request is None:
                raise NotFound("Service request", request_id)
            snapshot = serialize_request(request)
            try:
                await self.requests.delete(request)
                await self.session.commit()
            except SQLAlchemyError:
                await self.session.rollback()
                logger.exception("Failed to delete service request %d", request_id)
                raise StorageError("The request could not be deleted") from None

            logger.info("Service request %d deleted", request_id)
            await notify_request_update(self.publisher, snapshot, UpdateAction.DELETED)

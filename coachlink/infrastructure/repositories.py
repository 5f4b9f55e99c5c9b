"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AssignmentModel,
    DriverModel,
    ServiceRequestModel,
    UserModel,
    VehicleModel,
)
from coachlink.domain.enums import RequestStatus

# Primary keys are 32-bit INTEGER columns; anything outside never matches a row.
MAX_ID = 2**31 - 1


def storable_id(value: int) -> bool:
    return 1 <= value <= MAX_ID


class RequestRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, request: ServiceRequestModel) -> ServiceRequestModel:
        self.session.add(request)
        await self.session.flush()
        return request

    async def get_for_update(self, request_id: int) -> Optional[ServiceRequestModel]:
        """SELECT ... FOR UPDATE so concurrent transitions queue on the row."""
        if not storable_id(request_id):
            return None
        result = await self.session.execute(
            select(ServiceRequestModel)
            .where(ServiceRequestModel.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_hydrated(self, request_id: int) -> Optional[ServiceRequestModel]:
        """Fresh read of the request with its assignment, driver and vehicle."""
        if not storable_id(request_id):
            return None
        result = await self.session.execute(
            select(ServiceRequestModel)
            .where(ServiceRequestModel.id == request_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _filtered(self, query, search: str | None, status: RequestStatus | None):
        if search:
            query = query.where(
                or_(
                    ServiceRequestModel.customer_name.icontains(search, autoescape=True),
                    ServiceRequestModel.phone.icontains(search, autoescape=True),
                )
            )
        if status is not None:
            query = query.where(ServiceRequestModel.status == status)
        return query

    async def list_page(
        self,
        *,
        offset: int,
        limit: int,
        search: str | None = None,
        status: RequestStatus | None = None,
    ) -> list[ServiceRequestModel]:
        query = self._filtered(select(ServiceRequestModel), search, status)
        result = await self.session.execute(
            query.order_by(
                ServiceRequestModel.created_at.desc(), ServiceRequestModel.id.desc()
            )
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(
        self, search: str | None = None, status: RequestStatus | None = None
    ) -> int:
        query = self._filtered(
            select(func.count()).select_from(ServiceRequestModel), search, status
        )
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def delete(self, request: ServiceRequestModel) -> None:
        await self.session.delete(request)
        await self.session.flush()

    async def count_by_status(self) -> dict[RequestStatus, int]:
        result = await self.session.execute(
            select(ServiceRequestModel.status, func.count()).group_by(
                ServiceRequestModel.status
            )
        )
        return {RequestStatus(status): count for status, count in result.all()}

    async def count_created_per_day(self, since: datetime) -> dict[str, int]:
        day = func.date(ServiceRequestModel.created_at)
        result = await self.session.execute(
            select(day, func.count())
            .where(ServiceRequestModel.created_at >= since)
            .group_by(day)
        )
        return {str(d): count for d, count in result.all()}


class AssignmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_request(self, request_id: int) -> Optional[AssignmentModel]:
        result = await self.session.execute(
            select(AssignmentModel).where(AssignmentModel.request_id == request_id)
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        request: ServiceRequestModel,
        *,
        driver_id: int,
        vehicle_id: int,
        scheduled_time: datetime,
    ) -> AssignmentModel:
        """Update the request's assignment in place, or attach the first one.

        ``request`` must have been loaded with its ``assignment`` relationship
        (the default eager load does this).
        """
        assignment = request.assignment
        if assignment is not None:
            assignment.driver_id = driver_id
            assignment.vehicle_id = vehicle_id
            assignment.scheduled_time = scheduled_time
        else:
            assignment = AssignmentModel(
                driver_id=driver_id,
                vehicle_id=vehicle_id,
                scheduled_time=scheduled_time,
            )
            request.assignment = assignment
        await self.session.flush()
        await self.session.refresh(assignment, attribute_names=["driver", "vehicle"])
        return assignment

    async def count(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(AssignmentModel)
        )
        return result.scalar() or 0

    async def list_for_driver(self, driver_id: int) -> list[AssignmentModel]:
        result = await self.session.execute(
            select(AssignmentModel)
            .where(AssignmentModel.driver_id == driver_id)
            .order_by(AssignmentModel.scheduled_time.desc())
        )
        return list(result.scalars().all())

    async def list_for_vehicle(self, vehicle_id: int) -> list[AssignmentModel]:
        result = await self.session.execute(
            select(AssignmentModel)
            .where(AssignmentModel.vehicle_id == vehicle_id)
            .order_by(AssignmentModel.scheduled_time.desc())
        )
        return list(result.scalars().all())


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, driver_id: int) -> Optional[DriverModel]:
        if not storable_id(driver_id):
            return None
        return await self.session.get(DriverModel, driver_id)

    async def list_all(self) -> list[DriverModel]:
        result = await self.session.execute(
            select(DriverModel).order_by(DriverModel.name, DriverModel.id)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(DriverModel))
        return result.scalar() or 0


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        if not storable_id(vehicle_id):
            return None
        return await self.session.get(VehicleModel, vehicle_id)

    async def list_all(self) -> list[VehicleModel]:
        result = await self.session.execute(
            select(VehicleModel).order_by(VehicleModel.plate)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(VehicleModel)
        )
        return result.scalar() or 0


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_username(self, username: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        return result.scalar_one_or_none()

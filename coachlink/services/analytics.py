"""Read-only aggregates over service requests for the dashboard."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from coachlink.domain.enums import RequestStatus
from coachlink.infrastructure.repositories import (
    AssignmentRepository,
    DriverRepository,
    RequestRepository,
    VehicleRepository,
)


class AnalyticsService:
    def __init__(self, session: AsyncSession):
        self.requests = RequestRepository(session)
        self.assignments = AssignmentRepository(session)
        self.drivers = DriverRepository(session)
        self.vehicles = VehicleRepository(session)

    async def daily_counts(
        self, days: int = 7, today: Optional[date] = None
    ) -> list[dict]:
        """Requests created per UTC day for the last ``days`` days, oldest first.

        Days without requests are reported with a zero count.
        """
        today = today or datetime.now(timezone.utc).date()
        first_day = today - timedelta(days=days - 1)
        since = datetime.combine(first_day, time.min, tzinfo=timezone.utc)
        counts = await self.requests.count_created_per_day(since)
        return [
            {"date": day.isoformat(), "count": counts.get(day.isoformat(), 0)}
            for day in (first_day + timedelta(days=i) for i in range(days))
        ]

    async def status_counts(self) -> dict[str, int]:
        counts = await self.requests.count_by_status()
        return {status.value: counts.get(status, 0) for status in RequestStatus}

    async def overview(self) -> dict:
        by_status = await self.requests.count_by_status()
        total_requests = sum(by_status.values())
        total_assignments = await self.assignments.count()
        utilization = (
            round(total_assignments / total_requests * 100, 2) if total_requests else 0.0
        )
        return {
            "total_requests": total_requests,
            "total_drivers": await self.drivers.count(),
            "total_vehicles": await self.vehicles.count(),
            "total_assignments": total_assignments,
            "pending_requests": by_status.get(RequestStatus.PENDING, 0),
            "scheduled_requests": by_status.get(RequestStatus.SCHEDULED, 0),
            "utilization_rate": utilization,
        }

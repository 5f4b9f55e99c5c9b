"""Dashboard aggregates: daily volume, status breakdown, overview."""

from fastapi import APIRouter, Depends, Query

from coachlink.api.dependencies import get_analytics_service
from coachlink.api.schemas import (
    DailyAnalyticsResponse,
    OverviewResponse,
    StatusAnalyticsResponse,
)
from coachlink.api.security import require
from coachlink.domain.enums import Permission
from coachlink.services.analytics import AnalyticsService

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    dependencies=[Depends(require(Permission.READ))],
)


@router.get("/daily", response_model=DailyAnalyticsResponse, summary="Requests per day")
async def daily(
    days: int = Query(7, ge=1, le=365),
    service: AnalyticsService = Depends(get_analytics_service),
):
    data = await service.daily_counts(days)
    total = sum(day["count"] for day in data)
    return DailyAnalyticsResponse(
        data=data,
        summary={
            "total_requests": total,
            "average_per_day": round(total / days, 2),
            "period": f"Last {days} days",
        },
    )


@router.get("/status", response_model=StatusAnalyticsResponse, summary="Requests per status")
async def by_status(service: AnalyticsService = Depends(get_analytics_service)):
    counts = await service.status_counts()
    return StatusAnalyticsResponse(data=counts, total=sum(counts.values()))


@router.get("/overview", response_model=OverviewResponse, summary="Totals")
async def overview(service: AnalyticsService = Depends(get_analytics_service)):
    return await service.overview()

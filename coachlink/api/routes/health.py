"""GET /api/health -- liveness probe."""

from datetime import datetime, timezone

from fastapi import APIRouter

from coachlink.api.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health():
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))

"""
Service request endpoints
=========================

POST   /api/requests       -- public intake form (201, always ``pending``)
GET    /api/requests       -- paginated list with search / status filter
GET    /api/requests/{id}  -- one request with its assignment
PUT    /api/requests/{id}  -- status transition and/or field edit
DELETE /api/requests/{id}  -- delete (assignment goes with it)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from coachlink.api.dependencies import get_request_service
from coachlink.api.middleware import limiter
from coachlink.api.schemas import (
    MessageResponse,
    RequestCreate,
    RequestListResponse,
    RequestUpdate,
    ServiceRequestResponse,
)
from coachlink.api.security import require
from coachlink.config import settings
from coachlink.domain.enums import Permission
from coachlink.services.requests import RequestService

router = APIRouter(prefix="/requests", tags=["requests"])


@router.post(
    "",
    status_code=201,
    response_model=ServiceRequestResponse,
    summary="Submit a transportation request",
)
@limiter.limit(settings.request_rate_limit)
async def create_request(
    request: Request,
    body: RequestCreate,
    service: RequestService = Depends(get_request_service),
):
    return await service.create_request(body)


@router.get(
    "",
    response_model=RequestListResponse,
    summary="List requests",
    dependencies=[Depends(require(Permission.READ))],
)
async def list_requests(
    page: int = Query(1, description="1-based page number."),
    limit: int = Query(10, description="Page size, 1-100."),
    search: Optional[str] = Query(None, description="Matches name or phone."),
    status: Optional[str] = Query(None),
    service: RequestService = Depends(get_request_service),
):
    items, total = await service.list_requests(
        page=page, limit=limit, search=search, status=status
    )
    return RequestListResponse(
        items=[ServiceRequestResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        limit=limit,
        pages=service.page_count(total, limit),
    )


@router.get(
    "/{request_id}",
    response_model=ServiceRequestResponse,
    summary="Get one request",
    dependencies=[Depends(require(Permission.READ))],
)
async def get_request(
    request_id: int,
    service: RequestService = Depends(get_request_service),
):
    return await service.get_request(request_id)


@router.put(
    "/{request_id}",
    response_model=ServiceRequestResponse,
    summary="Change status or edit a request",
    description=(
        "Moves the request to ``status``. Scheduling requires ``driver_id``, "
        "``vehicle_id`` and ``scheduled_time`` and checks vehicle capacity. "
        "Without ``status`` only the descriptive fields are edited."
    ),
    dependencies=[Depends(require(Permission.WRITE))],
)
async def update_request(
    request_id: int,
    body: RequestUpdate,
    service: RequestService = Depends(get_request_service),
):
    return await service.transition(
        request_id,
        body.status,
        driver_id=body.driver_id,
        vehicle_id=body.vehicle_id,
        scheduled_time=body.scheduled_time,
        fields=body.edit_fields(),
    )


@router.delete(
    "/{request_id}",
    response_model=MessageResponse,
    summary="Delete a request",
    dependencies=[Depends(require(Permission.WRITE))],
)
async def delete_request(
    request_id: int,
    service: RequestService = Depends(get_request_service),
):
    await service.delete_request(request_id)
    return MessageResponse(message="Service request deleted successfully")

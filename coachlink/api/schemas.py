"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from coachlink.domain.enums import RequestStatus, UserRole

PHONE_PATTERN = r"^[\d\s\-+()]+$"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ── Requests ──────────────────────────────────────────────────────────


class RequestCreate(BaseModel):
    customer_name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., min_length=1, max_length=40, pattern=PHONE_PATTERN)
    pickup_location: Optional[str] = Field(None, max_length=255)
    dropoff_location: Optional[str] = Field(None, max_length=255)
    pickup_time: datetime
    passengers: Optional[int] = Field(None, ge=1, le=100)
    notes: Optional[str] = Field(None, max_length=1000)

    model_config = {"str_strip_whitespace": True}

    @field_validator("pickup_time")
    @classmethod
    def _pickup_time_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class RequestUpdate(BaseModel):
    """Body of ``PUT /requests/{id}``.

    Scheduling inputs are taken as sent; the transition engine parses them
    and reports every missing or malformed field at once.
    """

    status: Optional[str] = None
    driver_id: Any = None
    vehicle_id: Any = None
    scheduled_time: Any = None

    customer_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=40, pattern=PHONE_PATTERN)
    pickup_location: Optional[str] = Field(None, max_length=255)
    dropoff_location: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=1000)

    model_config = {"str_strip_whitespace": True}

    def edit_fields(self) -> dict:
        return self.model_dump(
            include={
                "customer_name",
                "phone",
                "pickup_location",
                "dropoff_location",
                "notes",
            },
            exclude_unset=True,
        )


# ── Responses ─────────────────────────────────────────────────────────


class DriverResponse(BaseModel):
    id: int
    name: str
    phone: str

    model_config = {"from_attributes": True}


class VehicleResponse(BaseModel):
    id: int
    plate: str
    capacity: int

    model_config = {"from_attributes": True}


class AssignmentResponse(BaseModel):
    id: int
    request_id: int
    driver_id: int
    vehicle_id: int
    scheduled_time: datetime
    driver: Optional[DriverResponse] = None
    vehicle: Optional[VehicleResponse] = None

    model_config = {"from_attributes": True}


class ServiceRequestResponse(BaseModel):
    id: int
    customer_name: str
    phone: str
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    pickup_time: datetime
    passengers: Optional[int] = None
    notes: Optional[str] = None
    status: RequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assignment: Optional[AssignmentResponse] = None

    model_config = {"from_attributes": True}


class RequestListResponse(BaseModel):
    items: list[ServiceRequestResponse]
    total: int
    page: int
    limit: int
    pages: int


class DriverDetailResponse(DriverResponse):
    assignments: list[AssignmentResponse] = []


class VehicleDetailResponse(VehicleResponse):
    assignments: list[AssignmentResponse] = []


class MessageResponse(BaseModel):
    message: str


# ── Auth ──────────────────────────────────────────────────────────────


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    username: str
    role: UserRole
    full_name: Optional[str] = None
    email: Optional[str] = None
    last_login: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds.")
    user: UserResponse


class VerifyResponse(BaseModel):
    valid: bool = True
    username: str
    role: UserRole
    user_id: Optional[int] = None


# ── Analytics ─────────────────────────────────────────────────────────


class DailyCount(BaseModel):
    date: str
    count: int


class DailySummary(BaseModel):
    total_requests: int
    average_per_day: float
    period: str


class DailyAnalyticsResponse(BaseModel):
    data: list[DailyCount]
    summary: DailySummary


class StatusAnalyticsResponse(BaseModel):
    data: dict[str, int]
    total: int


class OverviewResponse(BaseModel):
    total_requests: int
    total_drivers: int
    total_vehicles: int
    total_assignments: int
    pending_requests: int
    scheduled_requests: int
    utilization_rate: float = Field(
        ..., description="Assignments per request, as a percentage."
    )


# ── Misc ──────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime

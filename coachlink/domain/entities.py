"""
Domain value objects and the pure rules of the request workflow.

Patterns used
-------------
- ``parse_status`` / ``parse_schedule_fields`` turn loosely-typed client
  input into validated values or raise the matching domain error.
- ``check_capacity`` encapsulates the passengers-vs-capacity invariant
  (equal is allowed).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .enums import ROLE_PERMISSIONS, Permission, RequestStatus, UserRole
from .errors import CapacityExceeded, InvalidStatus, MissingScheduleFields

_INT_RE = re.compile(r"-?\d+")


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScheduleFields:
    driver_id: int
    vehicle_id: int
    scheduled_time: datetime


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as encoded in the access token."""

    username: str
    role: UserRole
    user_id: Optional[int] = None

    def can(self, permission: Permission) -> bool:
        return permission in ROLE_PERMISSIONS.get(self.role, frozenset())


# ── Rules ─────────────────────────────────────────────────────────────


def parse_status(value: Any) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        raise InvalidStatus(value, RequestStatus.values()) from None


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value.strip())
    return None


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_schedule_fields(
    driver_id: Any, vehicle_id: Any, scheduled_time: Any
) -> ScheduleFields:
    """Validate the three scheduling inputs together, reporting every problem."""
    errors: list[dict[str, str]] = []

    driver = _parse_int(driver_id)
    if driver_id is None or driver_id == "":
        errors.append({"field": "driver_id", "message": "Driver ID is required when scheduling"})
    elif driver is None:
        errors.append({"field": "driver_id", "message": "Driver ID must be an integer"})

    vehicle = _parse_int(vehicle_id)
    if vehicle_id is None or vehicle_id == "":
        errors.append({"field": "vehicle_id", "message": "Vehicle ID is required when scheduling"})
    elif vehicle is None:
        errors.append({"field": "vehicle_id", "message": "Vehicle ID must be an integer"})

    when = parse_instant(scheduled_time)
    if scheduled_time is None or scheduled_time == "":
        errors.append(
            {"field": "scheduled_time", "message": "Scheduled time is required when scheduling"}
        )
    elif when is None:
        errors.append(
            {"field": "scheduled_time", "message": "Scheduled time must be a valid date"}
        )

    if errors:
        raise MissingScheduleFields(errors)
    return ScheduleFields(driver_id=driver, vehicle_id=vehicle, scheduled_time=when)


def check_capacity(passengers: Optional[int], capacity: int) -> None:
    if passengers is not None and passengers > capacity:
        raise CapacityExceeded(capacity=capacity, passengers=passengers)

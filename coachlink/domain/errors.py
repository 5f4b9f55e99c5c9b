"""
Error taxonomy shared by the services and the HTTP boundary.

Every error carries a stable ``error_code`` and a human-readable message.
Field-level problems are listed in ``details["errors"]`` as
``{"field": ..., "message": ...}`` entries so clients can render them
next to the offending input.
"""

from __future__ import annotations

from typing import Any, Optional


class CoachLinkError(Exception):
    """Base class for all expected failures."""

    error_code = "ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


def _field_errors(*errors: tuple[str, str]) -> dict[str, Any]:
    return {"errors": [{"field": f, "message": m} for f, m in errors]}


class NotFound(CoachLinkError):
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, {"resource": resource, "id": resource_id})


class ValidationError(CoachLinkError):
    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: list[dict[str, Any]], message: str = "Invalid data"):
        super().__init__(message, {"errors": errors})


class InvalidStatus(CoachLinkError):
    error_code = "INVALID_STATUS"

    def __init__(self, status: Any, allowed: list[str]):
        super().__init__(
            f"Status must be one of: {', '.join(allowed)}",
            _field_errors(("status", f"Unsupported status {status!r}")),
        )


class MissingScheduleFields(CoachLinkError):
    error_code = "MISSING_SCHEDULE_FIELDS"

    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__(
            "driver_id, vehicle_id and scheduled_time are required when scheduling",
            {"errors": errors},
        )


class DriverNotFound(CoachLinkError):
    error_code = "DRIVER_NOT_FOUND"

    def __init__(self, driver_id: int):
        super().__init__(
            "Driver not found", _field_errors(("driver_id", f"Driver {driver_id} not found"))
        )


class VehicleNotFound(CoachLinkError):
    error_code = "VEHICLE_NOT_FOUND"

    def __init__(self, vehicle_id: int):
        super().__init__(
            "Vehicle not found",
            _field_errors(("vehicle_id", f"Vehicle {vehicle_id} not found")),
        )


class CapacityExceeded(CoachLinkError):
    error_code = "CAPACITY_EXCEEDED"

    def __init__(self, capacity: int, passengers: int):
        super().__init__(
            f"Vehicle capacity ({capacity}) is less than required passengers ({passengers})",
            _field_errors(
                (
                    "vehicle_id",
                    f"Vehicle capacity ({capacity}) is less than required "
                    f"passengers ({passengers})",
                )
            ),
        )


class Unauthorized(CoachLinkError):
    error_code = "UNAUTHORIZED"


class Forbidden(CoachLinkError):
    error_code = "FORBIDDEN"


class StorageError(CoachLinkError):
    """Opaque persistence failure; the cause is logged, never returned."""

    error_code = "STORAGE_ERROR"

    def __init__(self, message: str = "The request could not be saved"):
        super().__init__(message)

"""Exception handlers rendering every failure as one JSON envelope.

    {"error_code": "...", "message": "...", "details": {...}}
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from coachlink.domain.errors import (
    CapacityExceeded,
    CoachLinkError,
    DriverNotFound,
    Forbidden,
    InvalidStatus,
    MissingScheduleFields,
    NotFound,
    StorageError,
    Unauthorized,
    ValidationError,
    VehicleNotFound,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[CoachLinkError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidStatus: status.HTTP_400_BAD_REQUEST,
    MissingScheduleFields: status.HTTP_400_BAD_REQUEST,
    DriverNotFound: status.HTTP_400_BAD_REQUEST,
    VehicleNotFound: status.HTTP_400_BAD_REQUEST,
    CapacityExceeded: status.HTTP_400_BAD_REQUEST,
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_body(error_code: str, message: str, details: dict | None = None) -> dict:
    return {"error_code": error_code, "message": message, "details": details or {}}


async def coachlink_exception_handler(request: Request, exc: CoachLinkError) -> JSONResponse:
    status_code = next(
        (STATUS_CODES[cls] for cls in type(exc).__mro__ if cls in STATUS_CODES),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.error_code, exc.message, exc.details),
        headers=headers,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        errors.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("VALIDATION_ERROR", "Invalid data", {"errors": errors}),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("INTERNAL_ERROR", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CoachLinkError, coachlink_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

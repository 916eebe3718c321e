"""Global error handlers; every JSON error body carries the request id."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from campusconnect.api.request_id import get_request_id
from campusconnect.domain.proximity.exceptions import (
    CoordinateInvalid,
    LocationPersistFailed,
    MatchInputError,
    OutsideGeofence,
    ProfileNotFound,
    ProximityError,
    RateLimitExceeded,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (CoordinateInvalid, status.HTTP_400_BAD_REQUEST),
    (MatchInputError, status.HTTP_400_BAD_REQUEST),
    (OutsideGeofence, status.HTTP_403_FORBIDDEN),
    (ProfileNotFound, status.HTTP_404_NOT_FOUND),
    (LocationPersistFailed, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: ProximityError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        payload = {"detail": exc.detail, "request_id": get_request_id(request)}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        payload = {
            "detail": "validation_error",
            "errors": jsonable_errors(exc),
            "request_id": get_request_id(request),
        }
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(ProximityError)
    async def proximity_exc_handler(request: Request, exc: ProximityError):  # type: ignore[override]
        payload = {"code": exc.reason, "message": exc.message, "request_id": get_request_id(request)}
        return JSONResponse(status_code=status_for(exc), content=payload)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):  # type: ignore[override]
        payload = {"detail": "rate_limited", "request_id": get_request_id(request)}
        return JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content=payload)

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
        logger.exception("unhandled error path=%s", request.url.path)
        payload = {"detail": "internal_error", "request_id": get_request_id(request)}
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        item = {key: value for key, value in error.items() if key in ("loc", "msg", "type")}
        item["loc"] = [str(part) for part in item.get("loc", ())]
        errors.append(item)
    return errors

"""API error types and the global exception handlers.

Every error response has the same shape::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}

``details`` is only present when there is something to put in it. Database
and unexpected errors keep their internals out of the body unless the app
runs in debug mode.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import DatabaseError, IntegrityError

from app.core.metrics import emit_error

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for errors the import API reports to clients."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        self.headers = headers
        super().__init__(message)


class BadRequestError(APIError):
    """Upload rejected: wrong file type, unreadable sheet, or row limits."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, "bad_request", message, details)


class PayloadTooLargeError(APIError):
    def __init__(self, limit_bytes: int):
        super().__init__(
            status.HTTP_413_CONTENT_TOO_LARGE,
            "payload_too_large",
            f"File too large. Maximum size is {limit_bytes // (1024 * 1024)}MB",
            {"limit_bytes": limit_bytes},
        )


class NotFoundError(APIError):
    def __init__(self, resource: str, identifier: str | None = None):
        message = f"{resource} not found"
        if identifier:
            message += f": {identifier}"
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            "not_found",
            message,
            {"resource": resource, "identifier": identifier},
        )


class ConflictError(APIError):
    """The job is in a state that does not allow the operation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(status.HTTP_409_CONFLICT, "conflict", message, details)


class UnauthorizedError(APIError):
    """Missing, invalid or stale bearer token."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            "unauthorized",
            message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(APIError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(status.HTTP_403_FORBIDDEN, "forbidden", message)


class ServiceUnavailableError(APIError):
    """A backing service (the job queue) could not be reached."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            status.HTTP_503_SERVICE_UNAVAILABLE, "service_unavailable", message, details
        )


def error_body(
    request: Request,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the ``{"error": {...}}`` body shared by all handlers."""
    body: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": getattr(request.state, "request_id", None),
    }
    if details:
        body["details"] = details
    return {"error": body}


def _debug(request: Request) -> bool:
    return bool(getattr(request.app.state, "debug", False))


def _count(request: Request, code: str, status_code: int) -> None:
    emit_error(
        error_code=code,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
        request_id=getattr(request.state, "request_id", None),
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning(
        f"API error: {exc.error_code} - {exc.message}",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    _count(request, exc.error_code, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.error_code, exc.message, exc.details),
        headers=exc.headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    """Report bad query/path/form parameters field by field."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type", "validation_error"),
        }
        for err in exc.errors()
    ]
    # Client mistakes, not bugs
    logger.info(
        f"Validation error on {request.method} {request.url.path}",
        extra={"errors": errors},
    )
    _count(request, "validation_error", status.HTTP_422_UNPROCESSABLE_CONTENT)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content=error_body(
            request, "validation_error", "Validation failed", {"errors": errors}
        ),
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error(f"Database error: {exc}", exc_info=True)
    _count(request, "database_error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, IntegrityError):
        message = "Database integrity constraint violated"
    else:
        message = "A database error occurred"
    details = None
    if _debug(request):
        details = {"type": type(exc).__name__, "message": str(exc)}

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, "database_error", message, details),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception: {type(exc).__name__}: {exc}", exc_info=True)
    _count(request, "internal_error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    details = None
    if _debug(request):
        details = {
            "type": type(exc).__name__,
            "message": str(exc),
            "traceback": traceback.format_exception(exc),
        }

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            request, "internal_error", "An internal error occurred", details
        ),
    )


def setup_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """Register the handlers; ``debug`` exposes internals in 500 bodies."""
    app.state.debug = debug
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    # Also catches IntegrityError, a DatabaseError subclass
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

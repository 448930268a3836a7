"""FastAPI middleware for request IDs, security headers, request logging, CORS and gzip."""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.metrics import emit_http_request

logger = logging.getLogger(__name__)

DEV_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID to all requests and responses."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        # Use existing X-Request-ID if present, otherwise generate one
        request_id = request.headers.get(
            "X-Request-ID", str(uuid.uuid4())
        )

        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        # Only add HSTS in production (HTTPS)
        if settings.app_env == "production":
            response.headers[
                "Strict-Transport-Security"
            ] = "max-age=31536000; includeSubDomains"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log request/response with structured JSON logging and EMF metrics."""

    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or [
            "/health",
            "/docs",
            "/openapi.json",
            "/redoc",
        ]

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        if any(
            request.url.path.startswith(path)
            for path in self.exclude_paths
        ):
            return await call_next(request)

        request_id = getattr(request.state, "request_id", "unknown")
        start_time = time.time()

        request_log = {
            "type": "http_request",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client_host": request.client.host if request.client else None,
        }

        # Uploads are logged by size only
        content_length = request.headers.get("content-length")
        if request.method in ("POST", "PUT", "PATCH") and content_length:
            try:
                request_log["request_body_size"] = int(content_length)
            except ValueError:
                pass

        logger.info(
            json.dumps(request_log, default=str),
            extra={"request_id": request_id},
        )

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            logger.error(
                f"Request processing error: {type(e).__name__}: {str(e)}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                },
                exc_info=True,
            )
            raise
        finally:
            duration_ms = (time.time() - start_time) * 1000

            emit_http_request(
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=duration_ms,
                request_id=request_id,
            )

            response_log = {
                "type": "http_response",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
            }
            log_level = logging.ERROR if status_code >= 500 else (
                logging.WARNING if status_code >= 400 else logging.INFO
            )
            logger.log(
                log_level,
                json.dumps(response_log, default=str),
                extra={"request_id": request_id},
            )

        response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

        return response


def get_cors_origins() -> list[str]:
    """Allowed origins: ``CORS_ORIGINS`` if set, localhost in dev, none in production."""
    if settings.cors_origins:
        return [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
    if settings.app_env == "production":
        return []
    return list(DEV_CORS_ORIGINS)


def setup_cors(app) -> None:
    """Configure CORS middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )


def setup_gzip(app) -> None:
    """Configure GZip compression middleware."""
    app.add_middleware(
        GZipMiddleware,
        minimum_size=500,  # Only compress responses > 500 bytes
        compresslevel=6,
    )

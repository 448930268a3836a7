"""Main FastAPI application with middleware and logging setup."""

from __future__ import annotations

import json
import logging
import sys
import time

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import setup_error_handlers
from app.core.middleware import (
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
    RequestLoggingMiddleware,
    setup_cors,
    setup_gzip,
)
from app.imports.routes import router as imports_router

# API prefix constant
API_PREFIX = "/api/v1"


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record):
        log_data = {
            "timestamp": time.time(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add extra fields from record
        if hasattr(record, "request_id"):
            log_data["request_id"] = record.request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging() -> None:
    """Configure structured JSON logging."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        # Human-readable format for dev
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    # Clear existing handlers to avoid duplicates
    root_logger.handlers = []
    root_logger.addHandler(stdout_handler)

    # Set levels for noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("rq.worker").setLevel(logging.INFO)


# Setup logging before creating app
setup_logging()

app = FastAPI(
    title=f"{settings.church_name} Registry API",
    version="0.1.0",
)

# Setup error handlers (must be done before routes are added)
setup_error_handlers(app, debug=(settings.app_env != "production"))

# Add middleware (order matters - last added = first executed)

# GZip Compression (innermost)
if settings.enable_gzip:
    setup_gzip(app)

# CORS
setup_cors(app)

# Request Logging (needs request ID from the outer layer)
if settings.enable_request_logging:
    app.add_middleware(RequestLoggingMiddleware)

# Security Headers
app.add_middleware(SecurityHeadersMiddleware)

# Request ID (outermost, first to execute)
app.add_middleware(RequestIDMiddleware)

# Include routers
app.include_router(imports_router, prefix=API_PREFIX)


@app.get("/health")
async def health() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        {
            "status": "ok",
            "env": settings.app_env,
            "version": app.version,
        }
    )

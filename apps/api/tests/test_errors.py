"""Tests for error handling and exception management."""

from __future__ import annotations

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from sqlalchemy.exc import DatabaseError, IntegrityError

from app.core.errors import (
    APIError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    ServiceUnavailableError,
    UnauthorizedError,
    api_error_handler,
    database_error_handler,
    error_body,
    generic_exception_handler,
    setup_error_handlers,
    validation_error_handler,
)


def mock_request(debug: bool = False) -> Mock:
    request = Mock(spec=Request)
    request.state.request_id = "req-1"
    request.url.path = "/api/v1/imports/excel"
    request.method = "POST"
    request.app.state.debug = debug
    return request


class TestAPIErrors:
    """Test the APIError subclasses used by the import endpoints."""

    def test_bad_request(self):
        error = BadRequestError("File has no header row")

        assert error.status_code == status.HTTP_400_BAD_REQUEST
        assert error.error_code == "bad_request"
        assert error.details == {}

    def test_payload_too_large(self):
        """The message states the limit in megabytes."""
        error = PayloadTooLargeError(10 * 1024 * 1024)

        assert error.status_code == 413
        assert error.error_code == "payload_too_large"
        assert error.message == "File too large. Maximum size is 10MB"
        assert error.details["limit_bytes"] == 10 * 1024 * 1024

    def test_not_found(self):
        error = NotFoundError("Import job", "abc")

        assert error.status_code == status.HTTP_404_NOT_FOUND
        assert error.message == "Import job not found: abc"
        assert error.details == {"resource": "Import job", "identifier": "abc"}

    def test_conflict(self):
        error = ConflictError("Cannot delete job that is currently processing")

        assert error.status_code == status.HTTP_409_CONFLICT
        assert error.error_code == "conflict"

    def test_unauthorized_asks_for_bearer(self):
        error = UnauthorizedError("Invalid token")

        assert error.status_code == status.HTTP_401_UNAUTHORIZED
        assert error.error_code == "unauthorized"
        assert error.headers == {"WWW-Authenticate": "Bearer"}

    def test_forbidden(self):
        error = ForbiddenError("Admin access required")

        assert error.status_code == status.HTTP_403_FORBIDDEN
        assert error.error_code == "forbidden"

    def test_service_unavailable(self):
        error = ServiceUnavailableError("Import queue is unavailable")

        assert error.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert error.error_code == "service_unavailable"


class TestErrorBody:
    """Test the shared error body."""

    def test_with_details(self):
        body = error_body(mock_request(), "conflict", "busy", {"status": "processing"})

        assert body == {
            "error": {
                "code": "conflict",
                "message": "busy",
                "request_id": "req-1",
                "details": {"status": "processing"},
            }
        }

    def test_empty_details_are_left_out(self):
        body = error_body(mock_request(), "bad_request", "No valid data found in file", {})
        assert "details" not in body["error"]


class TestErrorHandlers:
    """Test error handler functions."""

    @pytest.mark.asyncio
    async def test_api_error_handler_emits_metric(self):
        with patch("app.core.errors.emit_error") as mock_emit:
            response = await api_error_handler(
                mock_request(), PayloadTooLargeError(1024 * 1024)
            )

        assert response.status_code == 413
        assert json.loads(response.body)["error"]["code"] == "payload_too_large"
        assert mock_emit.call_args.kwargs["status_code"] == 413

    @pytest.mark.asyncio
    async def test_api_error_handler_keeps_headers(self):
        with patch("app.core.errors.emit_error"):
            response = await api_error_handler(mock_request(), UnauthorizedError())

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_api_error_without_details(self):
        with patch("app.core.errors.emit_error"):
            response = await api_error_handler(mock_request(), APIError(400, "x", "y"))

        assert "details" not in json.loads(response.body)["error"]

    @pytest.mark.asyncio
    async def test_validation_error_lists_fields(self):
        error = RequestValidationError(
            errors=[{"loc": ("query", "limit"), "msg": "too big", "type": "less_than_equal"}]
        )

        with patch("app.core.errors.emit_error"):
            response = await validation_error_handler(mock_request(), error)

        body = json.loads(response.body)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
        assert body["error"]["code"] == "validation_error"
        assert body["error"]["details"]["errors"][0]["field"] == "query.limit"

    @pytest.mark.asyncio
    async def test_integrity_error_message(self):
        """Unique index violations are reported without leaking SQL."""
        error = IntegrityError("INSERT INTO members ...", None, None)

        with patch("app.core.errors.emit_error"):
            response = await database_error_handler(mock_request(), error)

        body = json.loads(response.body)
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert body["error"]["message"] == "Database integrity constraint violated"
        assert "details" not in body["error"]

    @pytest.mark.asyncio
    async def test_database_error_details_in_debug(self):
        with patch("app.core.errors.emit_error"):
            response = await database_error_handler(
                mock_request(debug=True), DatabaseError("gone", None, None)
            )

        assert "details" in json.loads(response.body)["error"]

    @pytest.mark.asyncio
    async def test_generic_exception_handler_hides_details(self):
        with patch("app.core.errors.emit_error"):
            response = await generic_exception_handler(
                mock_request(), RuntimeError("boom")
            )

        body = json.loads(response.body)
        assert body["error"]["code"] == "internal_error"
        assert "details" not in body["error"]

    @pytest.mark.asyncio
    async def test_generic_exception_handler_debug_traceback(self):
        with patch("app.core.errors.emit_error") as mock_emit:
            response = await generic_exception_handler(
                mock_request(debug=True), ValueError("unexpected")
            )

        body = json.loads(response.body)
        assert body["error"]["code"] == "internal_error"
        assert "traceback" in body["error"]["details"]
        mock_emit.assert_called_once()


class TestSetupErrorHandlers:
    """Test setup_error_handlers function."""

    def test_handlers_registered(self):
        """API errors raised in routes render the structured body."""
        app = FastAPI()
        setup_error_handlers(app, debug=False)

        @app.get("/jobs/{job_id}")
        async def get_job(job_id: str):
            raise NotFoundError("Import job", job_id)

        response = TestClient(app).get("/jobs/abc")

        assert app.state.debug is False
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    def test_integrity_error_uses_database_handler(self):
        app = FastAPI()
        setup_error_handlers(app, debug=False)

        @app.post("/members")
        async def create_member():
            raise IntegrityError("INSERT INTO members ...", None, None)

        response = TestClient(app, raise_server_exceptions=False).post("/members")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "database_error"

"""Tests for FastAPI middleware functionality."""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.middleware import (
    DEV_CORS_ORIGINS,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    get_cors_origins,
)


def logged_app() -> FastAPI:
    app = FastAPI()

    @app.get("/members")
    async def list_members(request: Request):
        return {"request_id": getattr(request.state, "request_id", None)}

    @app.post("/upload")
    async def upload():
        return {"status": "ok"}

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    return app


class TestRequestIDMiddleware:
    """Test RequestIDMiddleware functionality."""

    def test_adds_request_id_when_missing(self, client: TestClient):
        """A UUID request id is generated."""
        response = client.get("/health")
        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 36

    def test_preserves_existing_request_id(self, client: TestClient):
        """An incoming X-Request-ID is echoed back."""
        response = client.get("/health", headers={"X-Request-ID": "upload-42"})
        assert response.headers["X-Request-ID"] == "upload-42"

    def test_request_id_in_state(self):
        """The id is visible to route handlers."""
        response = TestClient(logged_app()).get("/members")
        assert response.json()["request_id"] == response.headers["X-Request-ID"]


class TestSecurityHeadersMiddleware:
    """Test SecurityHeadersMiddleware functionality."""

    def test_security_headers_present(self, client: TestClient):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_hsts_only_in_production(self, client: TestClient, monkeypatch):
        """HSTS is sent only when running in production."""
        assert "Strict-Transport-Security" not in client.get("/health").headers

        monkeypatch.setattr(settings, "app_env", "production")
        response = client.get("/health")
        assert "max-age=31536000" in response.headers["Strict-Transport-Security"]


class TestRequestLoggingMiddleware:
    """Test RequestLoggingMiddleware functionality."""

    def _logs(self, caplog, kind: str) -> list[dict]:
        return [
            json.loads(record.message)
            for record in caplog.records
            if f'"type": "{kind}"' in record.message
        ]

    def test_logs_request_and_response(self, caplog):
        """Both sides of a request are logged with the request id."""
        caplog.set_level(logging.INFO)

        response = TestClient(logged_app()).get(
            "/members", headers={"X-Request-ID": "abc"}
        )

        request_log = self._logs(caplog, "http_request")[0]
        response_log = self._logs(caplog, "http_response")[0]
        assert request_log["request_id"] == "abc"
        assert request_log["path"] == "/members"
        assert response_log["status_code"] == 200
        assert response.headers["X-Process-Time"].endswith("ms")

    def test_upload_size_logged(self, caplog):
        """POST bodies are logged by size only."""
        caplog.set_level(logging.INFO)

        TestClient(logged_app()).post("/upload", content=b"a,b\n1,2\n")

        request_log = self._logs(caplog, "http_request")[0]
        assert request_log["request_body_size"] == 8
        assert "1,2" not in json.dumps(request_log)

    def test_excludes_health_endpoint(self, client: TestClient, caplog):
        """Health checks are not logged."""
        caplog.set_level(logging.INFO)

        client.get("/health")

        assert self._logs(caplog, "http_request") == []


class TestCORSSetup:
    """Test CORS origin selection."""

    def test_dev_defaults(self, monkeypatch):
        monkeypatch.setattr(settings, "cors_origins", "")
        monkeypatch.setattr(settings, "app_env", "dev")
        assert get_cors_origins() == DEV_CORS_ORIGINS

    def test_production_without_origins(self, monkeypatch):
        """Production allows no origins unless configured."""
        monkeypatch.setattr(settings, "cors_origins", "")
        monkeypatch.setattr(settings, "app_env", "production")
        assert get_cors_origins() == []

    def test_configured_origins(self, monkeypatch):
        monkeypatch.setattr(
            settings, "cors_origins", "https://admin.church.org, https://church.org"
        )
        assert get_cors_origins() == ["https://admin.church.org", "https://church.org"]

    def test_preflight(self, client: TestClient):
        """The app answers CORS preflight requests from dev origins."""
        response = client.options(
            "/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.status_code == 200

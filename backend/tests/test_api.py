"""
HTTP surface tests.

Runs the full FastAPI app through TestClient. Settings and the mail transport
are swapped through app.dependency_overrides; no SMTP server is contacted.

Coverage:
  - GET / and GET /api/health
  - POST /api/contact success and every failure status (400 / 429 / 500)
  - 404 for unknown routes, OPTIONS acknowledgment, CORS and security headers
"""

import logging
import os
from unittest.mock import AsyncMock

import pytest

# Ensure env vars are set before importing anything that triggers app imports
os.environ.setdefault("EMAIL_USER", "owner@example.com")
os.environ.setdefault("EMAIL_PASS", "test-app-password")
os.environ.setdefault("SITE_NAME", "Test Portfolio")
os.environ.setdefault("EMAIL_FROM", "noreply@example.com")

from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.services.mail_transport import (
    TransportError,
    TransportErrorKind,
    build_transport,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

VALID_BODY = {"fullname": "Jane Doe", "email": "jane@x.com", "message": "Hi there"}


def _make_settings(**overrides) -> Settings:
    values = {
        "email_user": "owner@example.com",
        "email_pass": "test-app-password",
        "site_name": "Test Portfolio",
        "email_from": "noreply@example.com",
        "environment": "test",
    }
    values.update(overrides)
    return Settings(**values)


def _make_transport() -> AsyncMock:
    transport = AsyncMock()
    transport.verify.return_value = None
    transport.send.return_value = "<msg-1@example.com>"
    return transport


# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def app():
    from app.main import app as fastapi_app

    fastapi_app.state.rate_limiter.reset()
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.rate_limiter.reset()


@pytest.fixture()
def transport(app):
    mock = _make_transport()
    app.dependency_overrides[build_transport] = lambda: mock
    return mock


@pytest.fixture()
def client(app, transport):
    """TestClient with valid settings and a successful mock transport."""
    app.dependency_overrides[get_settings] = lambda: _make_settings()
    return TestClient(app)


# ===========================================================================
# Health
# ===========================================================================

class TestHealth:

    def test_root_reports_running(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["message"] == "Portfolio Backend API is running"
        assert data["environment"] == "test"
        assert data["uptime"] >= 0
        assert data["timestamp"].endswith("Z")

    def test_api_health_reports_email_configured(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Contact form API is ready"
        assert data["emailConfigured"] is True

    def test_api_health_succeeds_without_mail_credentials(self, app, client):
        app.dependency_overrides[get_settings] = lambda: _make_settings(email_pass=None)

        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["emailConfigured"] is False


# ===========================================================================
# POST /api/contact
# ===========================================================================

class TestContactSuccess:

    def test_end_to_end_success(self, client, transport):
        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Your message has been sent successfully!",
        }
        transport.verify.assert_awaited_once()
        transport.send.assert_awaited_once()

    def test_reports_rate_limit_headers(self, client):
        response = client.post("/api/contact", json=VALID_BODY)

        assert response.headers["RateLimit-Limit"] == "5"
        assert response.headers["RateLimit-Remaining"] == "4"
        assert int(response.headers["RateLimit-Reset"]) > 0

    def test_unknown_fields_ignored(self, client):
        response = client.post("/api/contact", json={**VALID_BODY, "phone": "555"})
        assert response.status_code == 200


class TestContactValidation:

    def test_missing_field_returns_400(self, client, transport):
        response = client.post(
            "/api/contact", json={"fullname": "Jane Doe", "email": "jane@x.com"}
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "All fields are required"}
        transport.verify.assert_not_called()

    def test_empty_body_returns_missing_fields(self, client):
        response = client.post("/api/contact")

        assert response.status_code == 400
        assert response.json()["error"] == "All fields are required"

    def test_invalid_email_returns_400(self, client, transport):
        response = client.post("/api/contact", json={**VALID_BODY, "email": "not-an-email"})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Please provide a valid email address",
        }
        transport.send.assert_not_called()

    def test_malformed_json_returns_400(self, client):
        response = client.post(
            "/api/contact",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid request body"}

    def test_non_string_field_returns_400(self, client):
        response = client.post("/api/contact", json={**VALID_BODY, "fullname": 42})

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestContactServerErrors:

    def test_missing_configuration_returns_500_without_transport(self, app, client, transport):
        app.dependency_overrides[get_settings] = lambda: _make_settings(email_from=None)

        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 500
        body = response.json()
        assert body == {
            "success": False,
            "error": "Server configuration error. Please contact the administrator.",
        }
        assert "EMAIL_FROM" not in response.text
        transport.verify.assert_not_called()

    def test_verify_failure_returns_unavailable(self, client, transport):
        transport.verify.side_effect = TransportError(
            TransportErrorKind.AUTH, "535 5.7.8 Username and Password not accepted"
        )

        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json()["error"] == (
            "Email service is currently unavailable. Please try again later."
        )
        assert "535" not in response.text
        transport.send.assert_not_called()

    @pytest.mark.parametrize(
        "kind, message",
        [
            (TransportErrorKind.AUTH, "Email authentication failed. Please contact the administrator."),
            (TransportErrorKind.CONNECTION, "Unable to connect to email service. Please try again later."),
            (TransportErrorKind.UNKNOWN, "Failed to send message. Please try again later."),
        ],
    )
    def test_send_failure_maps_to_generic_message(self, client, transport, kind, message):
        transport.send.side_effect = TransportError(kind, "smtp.gmail.com:587 failure")

        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": message}
        assert "smtp.gmail.com" not in response.text

    def test_unexpected_exception_returns_generic_message(self, client, transport):
        transport.send.side_effect = RuntimeError("boom at /srv/app.py line 12")

        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to send message. Please try again later.",
        }
        assert "boom" not in response.text


class TestContactRateLimit:

    def test_sixth_submission_in_window_is_refused(self, client, transport):
        for _ in range(5):
            assert client.post("/api/contact", json=VALID_BODY).status_code == 200

        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 429
        assert response.json() == {
            "success": False,
            "error": "Too many contact form submissions, please try again later.",
        }
        assert int(response.headers["Retry-After"]) > 0
        assert transport.send.await_count == 5

    def test_invalid_submissions_count_towards_limit(self, client):
        for _ in range(5):
            client.post("/api/contact", json={})

        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 429

    def test_health_is_not_rate_limited(self, client):
        for _ in range(10):
            assert client.get("/api/health").status_code == 200

    def test_rate_limit_headers_kept_on_400(self, client):
        response = client.post("/api/contact", json={"fullname": "Jane Doe"})

        assert response.status_code == 400
        assert response.headers["RateLimit-Limit"] == "5"
        assert response.headers["RateLimit-Remaining"] == "4"

    def test_rate_limit_headers_kept_on_500(self, client, transport):
        transport.send.side_effect = TransportError(TransportErrorKind.UNKNOWN, "550 rejected")
        client.post("/api/contact", json=VALID_BODY)

        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 500
        assert response.headers["RateLimit-Remaining"] == "3"

    def test_refused_response_reports_no_remaining(self, client):
        for _ in range(5):
            client.post("/api/contact", json=VALID_BODY)

        response = client.post("/api/contact", json=VALID_BODY)

        assert response.status_code == 429
        assert response.headers["RateLimit-Remaining"] == "0"
        assert response.headers["RateLimit-Reset"] == response.headers["Retry-After"]


# ===========================================================================
# Routing, CORS and headers
# ===========================================================================

class TestRouting:

    def test_unknown_route_returns_404(self, client):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Endpoint not found"}

    def test_wrong_method_returns_404(self, client):
        response = client.get("/api/contact")

        assert response.status_code == 404
        assert response.json()["error"] == "Endpoint not found"

    def test_options_is_acknowledged_without_pipeline(self, client, transport):
        response = client.options("/api/contact")

        assert response.status_code == 200
        transport.verify.assert_not_called()

    def test_preflight_from_allowed_origin(self, client):
        response = client.options(
            "/api/contact",
            headers={
                "Origin": "http://localhost:5500",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5500"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_simple_request_from_unknown_origin_gets_no_cors_header(self, client):
        response = client.get("/api/health", headers={"Origin": "https://evil.example"})

        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers

    def test_security_headers_present(self, client):
        response = client.get("/")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert response.headers["Cross-Origin-Resource-Policy"] == "cross-origin"
        assert "Strict-Transport-Security" in response.headers

    def test_security_headers_on_error_responses(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.headers["X-Content-Type-Options"] == "nosniff"


# ===========================================================================
# Startup
# ===========================================================================

class TestStartup:

    def test_lifespan_logs_configuration_without_secrets(self, app, caplog):
        with caplog.at_level(logging.INFO, logger="app.main"):
            with TestClient(app) as started:
                assert started.get("/api/health").status_code == 200

        assert "Portfolio Backend API running on port" in caplog.text
        assert "EMAIL_PASS: Set" in caplog.text
        assert "test-app-password" not in caplog.text

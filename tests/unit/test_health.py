"""
Tests for health check endpoints.
"""

import importlib
from unittest.mock import AsyncMock, patch

import structlog
from fastapi.testclient import TestClient

from app.main import app

main_module = importlib.import_module("app.main")

client = TestClient(app)

HEALTHY_DB = {
    "healthy": True,
    "service": "database_pool",
    "connection_time_ms": 1.2,
    "pool_stats": {
        "pool_size": 2,
        "pool_available": 2,
        "pool_utilization_percent": 0.0,
        "requests_waiting": 0,
    },
}


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "job-calendar"


def test_healthz_echoes_request_id():
    response = client.get("/healthz", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


def test_healthz_generates_request_id():
    response = client.get("/healthz")

    assert response.headers.get("X-Request-ID")


def test_request_completion_log_carries_request_id(monkeypatch):
    seen = []

    class RecordingLogger:
        def info(self, message, **kwargs):
            seen.append((message, structlog.contextvars.get_contextvars()))

    monkeypatch.setattr(main_module, "logger", RecordingLogger())

    client.get("/healthz", headers={"X-Request-ID": "req-7"})

    [(message, bound)] = seen
    assert message == "HTTP request completed"
    assert bound["request_id"] == "req-7"


def test_readyz_endpoint_all_healthy():
    """Test readiness endpoint when the database is healthy."""
    with patch("app.routes.health.db_health_check", AsyncMock(return_value=HEALTHY_DB)):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["database"]["ok"] is True
    assert data["checks"]["database"]["pool_size"] == 2
    assert data["checks"]["configuration"]["ok"] is True
    assert data["checks"]["configuration"]["calendar_timezone"] == "America/Chicago"


def test_readyz_endpoint_database_unhealthy():
    """Test readiness endpoint when the pool is not up."""
    unhealthy = {"healthy": False, "error": "Pool not initialized", "service": "database_pool"}
    with patch("app.routes.health.db_health_check", AsyncMock(return_value=unhealthy)):
        response = client.get("/readyz")

    # Still 200, but overall_ok is False
    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["database"]["error"] == "Pool not initialized"


def test_readyz_endpoint_database_check_raises():
    with patch(
        "app.routes.health.db_health_check", AsyncMock(side_effect=RuntimeError("boom"))
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["database"]["error"] == "RuntimeError: boom"
    assert isinstance(data["checks"]["database"]["latency_ms"], (int, float))


def test_readyz_flags_invalid_timezone():
    with (
        patch("app.routes.health.db_health_check", AsyncMock(return_value=HEALTHY_DB)),
        patch("app.routes.health.settings.CALENDAR_TIMEZONE", "Mars/Olympus_Mons"),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["configuration"]["ok"] is False

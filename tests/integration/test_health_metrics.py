"""Integration tests for /healthz and /metrics endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from backend.app.config import Settings
from backend.app.main import create_app
from backend.app.services import Services, build_services
from backend.app.utils.metrics import PrometheusAdmissionMetrics


@pytest.fixture
def client(services: Services) -> TestClient:
    """Create test client."""
    return TestClient(create_app(services))


class TestHealthEndpoint:
    """Test /healthz endpoint."""

    def test_health_always_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_healthz_in_memory_reports_not_configured(self, client: TestClient) -> None:
        """Memory storage and locks have nothing to check."""
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"] == {"db": "not_configured", "redis": "not_configured"}

    def test_healthz_checks_sql_engine(self, sqlite_engine: Engine) -> None:
        services = build_services(Settings(storage_backend="memory", lock_backend="memory"))
        services.engine = sqlite_engine

        response = TestClient(create_app(services)).get("/healthz")

        assert response.status_code == 200
        assert response.json()["components"]["db"] == "ok"

    @patch("backend.app.api.routes.health.check_db")
    @patch("backend.app.api.routes.health.check_redis")
    def test_healthz_returns_503_when_db_fails(
        self,
        mock_check_redis: MagicMock,
        mock_check_db: MagicMock,
        client: TestClient,
    ) -> None:
        """Test /healthz returns 503 when DB check fails."""
        mock_check_db.return_value = (False, "connection refused")
        mock_check_redis.return_value = (True, "ok")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "connection refused"
        assert data["components"]["redis"] == "ok"

    @patch("backend.app.api.routes.health.check_db")
    @patch("backend.app.api.routes.health.check_redis")
    def test_healthz_returns_503_when_redis_fails(
        self,
        mock_check_redis: MagicMock,
        mock_check_db: MagicMock,
        client: TestClient,
    ) -> None:
        """Admission locks live in Redis, so an unreachable Redis is degraded."""
        mock_check_db.return_value = (True, "ok")
        mock_check_redis.return_value = (False, "timeout")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["redis"] == "timeout"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, client: TestClient) -> None:
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "# HELP" in response.text or "# TYPE" in response.text

    def test_metrics_include_admission_metrics(self, client: TestClient) -> None:
        metrics = PrometheusAdmissionMetrics()
        metrics.record_decision("admitted", "ok")
        metrics.record_lock_wait(2.5)
        metrics.inc_denial("settings.update")

        text = client.get("/metrics").text

        assert "admission_decisions_total" in text
        assert "admission_lock_wait_ms" in text
        assert "authorization_denials_total" in text


class TestRootEndpoint:
    def test_root_returns_api_info(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Restaurant Core API"
        assert data["version"] == "0.1.0"

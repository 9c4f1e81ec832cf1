"""Tests for health check endpoints."""

from datetime import datetime
from unittest.mock import AsyncMock

from tests.consts import API_BASE


def test_health_check(client):
    """Test basic health check endpoint."""
    response = client.get(f"{API_BASE}/health")

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "healthy"
    assert data["service"] == "CCDigital Access Request API"
    assert data["version"] == "v1"
    assert data["access_requests_enabled"] is False

    # Verify timestamp is a valid ISO format
    datetime.fromisoformat(data["timestamp"])


def test_readiness_without_database(client):
    """Without the access request feature there is no database to check."""
    response = client.get(f"{API_BASE}/health/ready")

    assert response.status_code == 200
    assert response.json() == {"Message": "Ready (access requests disabled)", "DatabaseConnected": False}


def test_readiness_with_healthy_database(client_with_access_requests):
    response = client_with_access_requests.get(f"{API_BASE}/health/ready")

    assert response.status_code == 200
    assert response.json()["DatabaseConnected"] is True


def test_readiness_with_unhealthy_database(client_with_access_requests, mock_domain_db_pool):
    mock_domain_db_pool.health_check = AsyncMock(return_value=False)

    response = client_with_access_requests.get(f"{API_BASE}/health/ready")

    assert response.status_code == 503
    assert response.json()["Message"] == "Domain database unavailable"


def test_health_reports_access_requests_enabled(client_with_access_requests):
    response = client_with_access_requests.get(f"{API_BASE}/health")

    assert response.json()["access_requests_enabled"] is True


def test_openapi_schema(client):
    response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json()["info"]["title"] == "CCDigital Access Request API"


def test_request_id_header_is_echoed(client):
    response = client.get(f"{API_BASE}/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"

"""Smoke tests for the service endpoints."""

from fastapi.testclient import TestClient


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_describes_service(client: TestClient) -> None:
    body = client.get("/").json()

    assert body["name"] == "Keygate Relay"
    assert body["docs"] == "/docs"


def test_system_health_checks_store(client: TestClient) -> None:
    body = client.get("/api/v1/system/health").json()

    assert body["status"] == "healthy"
    assert body["components"]["database"] == "healthy"


def test_public_config_hides_secrets(make_client) -> None:
    client = make_client(callback_secret="super-secret", admin_token="admin-secret")

    body = client.get("/api/v1/system/config").json()

    assert body["callback"]["auth_enabled"] is True
    assert body["stats_enabled"] is True
    assert "super-secret" not in str(body)
    assert "admin-secret" not in str(body)

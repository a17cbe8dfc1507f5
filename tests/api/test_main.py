import pytest
from fastapi.testclient import TestClient

from chat_relay.main import create_app


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


def test_routes_are_mounted(client):
    paths = {route.path for route in client.app.routes}

    assert "/ws" in paths
    assert "/api/v1/health" in paths
    assert "/api/v1/auth/logout" in paths


def test_health_through_full_middleware_stack(client):
    response = client.get("/api/v1/health", headers={"X-Correlation-ID": "probe-1"})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"] == "probe-1"

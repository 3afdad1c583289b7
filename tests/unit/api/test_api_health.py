from fastapi.testclient import TestClient

from src.api.config import AppSettings
from src.api.main import create_app


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/health/live").json() == {"status": "live"}
    assert client.get("/health/ready").json() == {"status": "ready"}


def test_readiness_reports_not_ready_before_startup():
    app = create_app(AppSettings(session_secret="test-session-secret"))
    client = TestClient(app)

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "not_ready"}


def test_metrics_endpoint_is_exposed(client):
    client.get("/api/public/proposals/1")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")


def test_openapi_documents_all_route_groups(client):
    paths = client.get("/openapi.json").json()["paths"]

    assert "/api/auth/login" in paths
    assert "/api/proposals/{proposal_id}/sign" in paths
    assert "/api/public/proposals/{proposal_id}/schedule" in paths

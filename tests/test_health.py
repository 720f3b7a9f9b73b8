import pytest
from fastapi.testclient import TestClient

from acrecap.core import health as health_module


def test_healthz_returns_plain_ok(unconfigured_client: TestClient) -> None:
    response = unconfigured_client.get("/healthz")
    assert response.status_code == 200
    assert response.text == "ok"
    assert response.headers["cache-control"] == "no-store"


def test_root_banner(unconfigured_client: TestClient) -> None:
    response = unconfigured_client.get("/")
    assert response.status_code == 200
    assert response.text == health_module.BANNER


def test_api_health_live(unconfigured_client: TestClient) -> None:
    response = unconfigured_client.get("/api/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert "timestamp" in payload


def test_ready_without_backends_is_ok(unconfigured_client: TestClient) -> None:
    response = unconfigured_client.get("/api/health/ready")
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["checks"]["database"]["status"] == "not_configured"
    assert payload["checks"]["redis"]["status"] == "not_configured"


def test_ready_degraded_when_database_fails(monkeypatch, unconfigured_client: TestClient) -> None:
    async def bad_db(_database):
        return {"status": "error", "error": "unreachable"}

    monkeypatch.setattr(health_module, "_check_db", bad_db)

    response = unconfigured_client.get("/api/health/ready")
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is False
    assert payload["checks"]["database"]["status"] == "error"


def test_security_headers_and_request_id(unconfigured_client: TestClient) -> None:
    response = unconfigured_client.get("/healthz", headers={"x-request-id": "req-123"})
    assert response.headers["x-request-id"] == "req-123"
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert response.headers["cross-origin-resource-policy"] == "cross-origin"
    assert "content-security-policy" in response.headers
    assert "strict-transport-security" not in response.headers


def test_request_id_generated_when_missing(unconfigured_client: TestClient) -> None:
    response = unconfigured_client.get("/healthz")
    assert response.headers["x-request-id"]


def test_unknown_api_path_returns_not_found(unconfigured_client: TestClient) -> None:
    response = unconfigured_client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.parametrize(
    "origin, allowed",
    [("http://localhost:5173", True), ("https://evil.example", False)],
)
def test_cors_only_allows_configured_origins(unconfigured_client: TestClient, origin, allowed) -> None:
    response = unconfigured_client.get("/api/health", headers={"Origin": origin})
    assert response.status_code == 200
    assert ("access-control-allow-origin" in response.headers) is allowed

"""Property tests for the health and readiness endpoints.

Liveness always answers 200 and reflects each dependency state; readiness
answers 200 only when every configured dependency passes its probe.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from hypothesis import given, settings

from conftest import build_app, dependency_for, dependency_kinds

_EXPECTED_STATE = {
    "not_configured": "not_configured",
    "healthy": "healthy",
    "failing": "unhealthy",
    "slow": "unhealthy",
}


@settings(max_examples=40, deadline=None)
@given(kind=dependency_kinds)
def test_health_always_200_and_reflects_dependency(kind: str) -> None:
    client = TestClient(build_app(dependency_for(kind)))

    for path in ("/health", "/api/v1/health"):
        resp = client.get(path)
        assert resp.status_code == 200

        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert data["services"] == {"database": _EXPECTED_STATE[kind]}
        expected_status = "unhealthy" if _EXPECTED_STATE[kind] == "unhealthy" else "healthy"
        assert data["status"] == expected_status
        assert data["version"] == "1.0.0"


@settings(max_examples=40, deadline=None)
@given(kind=dependency_kinds)
def test_ready_reflects_configured_dependency(kind: str) -> None:
    client = TestClient(build_app(dependency_for(kind)))

    resp = client.get("/ready")
    body = resp.json()

    if kind in ("not_configured", "healthy"):
        assert resp.status_code == 200
        assert body["success"] is True
        assert body["data"] == {"ready": True}
    else:
        assert resp.status_code == 503
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_READY"
        assert body["error"]["message"] == "Database not ready"
        assert "data" not in body

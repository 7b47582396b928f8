"""Tests for correlation ID middleware, error bodies and health checks.

Verifies:
- X-Request-ID header in responses (generated or echoed)
- debug_id in handled error responses without internal details
- /ready reflects database reachability
"""

import uuid


async def test_response_includes_generated_correlation_id(api_client):
    """Every API response should include X-Request-ID header with valid UUID."""
    response = await api_client.get("/api/health")

    assert response.status_code == 200
    uuid.UUID(response.headers["x-request-id"])


async def test_custom_correlation_id_echoed(api_client):
    response = await api_client.get("/api/health", headers={"X-Request-ID": "custom-id-123"})

    assert response.headers["x-request-id"] == "custom-id-123"


async def test_different_requests_get_different_ids(api_client):
    first = await api_client.get("/api/health")
    second = await api_client.get("/api/health")

    assert first.headers["x-request-id"] != second.headers["x-request-id"]


async def test_not_found_response_includes_debug_id(api_client):
    """Error responses carry a debug_id and nothing from the stack."""
    response = await api_client.get(f"/api/projects/{uuid.uuid4()}/phase/evaluate")

    assert response.status_code == 404
    body = response.json()
    uuid.UUID(body["debug_id"])
    assert "traceback" not in response.text.lower()


async def test_ready_when_database_reachable(api_client):
    response = await api_client.get("/api/ready")

    assert response.status_code == 200
    assert response.json()["checks"]["database"] is True


async def test_ready_degraded_without_database(api_client):
    import showops.db.base as db_mod

    db_mod._session_factory = None

    response = await api_client.get("/api/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"

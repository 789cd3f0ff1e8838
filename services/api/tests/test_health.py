"""Tests for health endpoint and error envelope."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_health_needs_no_token(client: AsyncClient):
    response = await client.get("/health", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_error_envelope_format(client: AsyncClient):
    """Errors use { "error": { code, message, detail } }."""
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    body = response.json()
    assert set(body) == {"error"}
    assert set(body["error"]) == {"code", "message", "detail"}
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert body["error"]["message"] == "Access token required"


@pytest.mark.asyncio
async def test_request_validation_is_400(client: AsyncClient):
    response = await client.post("/api/auth/login", json={"email": "not-an-email"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_FAILED"

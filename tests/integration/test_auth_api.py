from __future__ import annotations

import pytest


@pytest.mark.anyio
async def test_health_check(anonymous_client) -> None:
  response = await anonymous_client.get("/health")
  assert response.status_code == 200
  assert response.json()["status"] == "ok"


@pytest.mark.anyio
async def test_login_rejects_wrong_password(anonymous_client) -> None:
  response = await anonymous_client.post("/api/login", json={"email": "demo@astrawrite.test", "password": "wrong"})
  assert response.status_code == 401
  body = response.json()
  assert body["detail"] == "Invalid credentials"
  assert body["requestId"] == response.headers["x-request-id"]


@pytest.mark.anyio
async def test_protected_routes_require_session(anonymous_client) -> None:
  response = await anonymous_client.get("/api/keys")
  assert response.status_code == 401
  assert response.json()["detail"] == "Unauthorized"


@pytest.mark.anyio
async def test_login_then_logout(async_client) -> None:
  assert (await async_client.get("/api/keys")).status_code == 200

  response = await async_client.post("/api/logout")
  assert response.status_code == 200
  assert response.json() == {"success": True}
  assert (await async_client.get("/api/keys")).status_code == 401


@pytest.mark.anyio
async def test_login_validates_payload(anonymous_client) -> None:
  response = await anonymous_client.post("/api/login", json={"email": "demo@astrawrite.test"})
  assert response.status_code == 422
  assert all("input" not in error for error in response.json()["detail"])

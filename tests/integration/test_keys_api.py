from __future__ import annotations

import pytest


@pytest.mark.anyio
async def test_key_lifecycle(async_client) -> None:
  created = await async_client.post("/api/keys", json={"label": "Primary", "key": "AIzaSyA-secret-9876", "provider": "GEMINI"})
  assert created.status_code == 201
  first = created.json()
  assert first["maskedKey"] == "********9876"
  assert first["isActive"] is True
  assert "key" not in first

  second = (await async_client.post("/api/keys", json={"label": "Backup", "key": "sk-or-v1-1111", "provider": "OPENROUTER"})).json()
  assert second["isActive"] is False

  selected = await async_client.post(f"/api/keys/select/{second['id']}")
  assert selected.status_code == 200
  assert selected.json()["isActive"] is True

  listed = (await async_client.get("/api/keys")).json()
  assert [(item["label"], item["isActive"]) for item in listed] == [("Primary", False), ("Backup", True)]

  assert (await async_client.delete(f"/api/keys/{second['id']}")).status_code == 204
  listed = (await async_client.get("/api/keys")).json()
  assert [(item["label"], item["isActive"]) for item in listed] == [("Primary", True)]


@pytest.mark.anyio
async def test_unknown_key_returns_404(async_client) -> None:
  response = await async_client.delete("/api/keys/missing")
  assert response.status_code == 404
  assert response.json()["detail"] == "API key not found."


@pytest.mark.anyio
async def test_unknown_provider_is_rejected(async_client) -> None:
  response = await async_client.post("/api/keys", json={"label": "X", "key": "abc", "provider": "OTHER"})
  assert response.status_code == 422

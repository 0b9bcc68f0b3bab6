from __future__ import annotations

import pytest

from astrawrite.api.routes import wordpress as wordpress_routes
from astrawrite.services import generation as generation_service

PLAN = {
  "pillarPage": {"title": "The Complete Guide to Tea", "keyword": "tea"},
  "clusters": [
    {"title": "Green Tea Benefits", "keyword": "green tea", "linkToPillarAnchor": "tea guide", "crossLinkSuggestion": "Brewing Oolong"},
    {"title": "Brewing Oolong", "keyword": "oolong", "linkToPillarAnchor": "complete tea guide", "crossLinkSuggestion": "Green Tea Benefits"},
  ],
}


@pytest.fixture
def use_model(monkeypatch: pytest.MonkeyPatch, make_model):
  model = make_model(structured=PLAN)

  async def _resolve(*_args, **_kwargs):
    return model

  monkeypatch.setattr(generation_service, "resolve_model", _resolve)
  return model


@pytest.mark.anyio
async def test_bulk_run_from_pasted_input(async_client, use_model, jobs_repo) -> None:
  response = await async_client.post("/api/bulk", json={"input": "keyword,title\nalpha,Alpha Guide\nbeta\n", "options": {"includeImages": False}})
  assert response.status_code == 202
  run = response.json()
  assert [entry["keyword"] for entry in run["entries"]] == ["alpha", "beta"]

  status = (await async_client.get(f"/api/bulk/{run['id']}")).json()
  assert [entry["status"] for entry in status["entries"]] == ["Completed", "Completed"]
  assert [entry["title"] for entry in status["entries"]] == ["Alpha Guide", "Generated Title"]
  assert status["finishedAt"] is not None
  assert len(await jobs_repo.list_jobs()) == 2


@pytest.mark.anyio
async def test_bulk_requires_keywords(async_client, use_model) -> None:
  assert (await async_client.post("/api/bulk", json={"options": {}})).status_code == 422
  response = await async_client.post("/api/bulk", json={"input": "keyword\n"})
  assert response.status_code == 400
  assert (await async_client.get("/api/bulk/unknown")).status_code == 404


@pytest.mark.anyio
async def test_topic_cluster_plan_then_execute(async_client, use_model) -> None:
  planned = await async_client.post("/api/tools/topic-cluster", json={"topic": "tea"})
  assert planned.status_code == 200
  plan = planned.json()
  assert plan["pillarPage"] == PLAN["pillarPage"]
  assert plan["topic"] == "tea"

  response = await async_client.post("/api/clusters/execute", json=plan)
  assert response.status_code == 202
  run_id = response.json()["id"]

  status = (await async_client.get(f"/api/clusters/{run_id}")).json()
  assert [(entry["pageType"], entry["status"]) for entry in status["entries"]] == [("Pillar", "Completed"), ("Cluster", "Completed"), ("Cluster", "Completed")]
  prompts = [call["prompt"] for call in use_model.stream_calls]
  assert "IMPORTANT INTERLINKING" not in prompts[0]
  assert all("IMPORTANT INTERLINKING" in prompt for prompt in prompts[1:])


@pytest.mark.anyio
async def test_invalid_cluster_plan_from_model(async_client, monkeypatch: pytest.MonkeyPatch, make_model) -> None:
  model = make_model(structured={"pillarPage": {"title": "Only pillar", "keyword": "x"}, "clusters": []})

  async def _resolve(*_args, **_kwargs):
    return model

  monkeypatch.setattr(generation_service, "resolve_model", _resolve)
  response = await async_client.post("/api/tools/topic-cluster", json={"topic": "x"})
  assert response.status_code == 502
  assert (await async_client.get("/api/clusters/unknown")).status_code == 404


class StubPublisher:
  instances: list[StubPublisher] = []

  def __init__(self, config, *, timeout: float) -> None:
    self.config = config
    self.timeout = timeout
    self.calls: list[tuple] = []
    StubPublisher.instances.append(self)

  async def publish(self, title, content, image_url=None, *, post_type=None, status=None) -> str:
    self.calls.append((title, content, image_url, post_type, status))
    return "https://blog.test/?p=7"


@pytest.mark.anyio
async def test_execute_rejects_blank_plan_fields(async_client, use_model, jobs_repo) -> None:
  blank_pillar = {**PLAN, "pillarPage": {"title": "   ", "keyword": "tea"}}
  blank_cluster = {**PLAN, "clusters": [{**PLAN["clusters"][0], "keyword": "\t"}]}

  for body in (blank_pillar, blank_cluster):
    response = await async_client.post("/api/clusters/execute", json=body)
    assert response.status_code == 422
    assert "requestId" in response.json()

  assert use_model.stream_calls == []
  assert await jobs_repo.list_jobs() == []


@pytest.mark.anyio
async def test_wordpress_post(async_client, monkeypatch: pytest.MonkeyPatch, settings) -> None:
  monkeypatch.setattr(wordpress_routes, "WordPressPublisher", StubPublisher)
  StubPublisher.instances.clear()

  payload = {"title": "Hello", "content": "<p>Body</p>", "postType": "pages", "config": {"url": "https://blog.test", "username": "editor", "applicationPassword": "pw"}}
  response = await async_client.post("/api/wordpress/post", json=payload)

  assert response.status_code == 200
  assert response.json() == {"link": "https://blog.test/?p=7"}
  publisher = StubPublisher.instances[0]
  assert publisher.timeout == settings.wordpress_timeout_seconds
  assert publisher.calls == [("Hello", "<p>Body</p>", None, "pages", None)]


@pytest.mark.anyio
async def test_wordpress_post_without_credentials(async_client) -> None:
  payload = {"title": "Hello", "content": "<p>Body</p>", "config": {"url": "https://blog.test"}}
  response = await async_client.post("/api/wordpress/post", json=payload)
  assert response.status_code == 400
  assert response.json()["detail"] == "WordPress configuration is missing."

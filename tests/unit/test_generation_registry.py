from __future__ import annotations

import pytest
from fastapi import BackgroundTasks

from astrawrite.jobs.bulk import BulkItem, BulkOptions
from astrawrite.jobs.cluster import ClusterPlan
from astrawrite.schema.article import ArticleConfig
from astrawrite.services import generation as generation_service
from astrawrite.services.api_keys import ApiKeyService

PLAN = ClusterPlan.from_model_output({"pillarPage": {"title": "Guide", "keyword": "guide"}, "clusters": [{"title": "Page", "keyword": "page"}]}, topic="guide")


@pytest.fixture
def routed_model(monkeypatch, fake_model):
  async def _resolve(_key_service, _settings, _purpose):
    return fake_model

  monkeypatch.setattr(generation_service, "resolve_model", _resolve)
  return fake_model


def test_get_editor_reuses_runner_for_same_id(jobs_repo, settings) -> None:
  first = generation_service.get_editor("writer", jobs_repo, settings)
  assert generation_service.get_editor("writer", jobs_repo, settings) is first


def test_idle_editors_are_evicted_least_recently_used_first(jobs_repo, settings, monkeypatch) -> None:
  monkeypatch.setattr(generation_service, "MAX_EDITORS", 2)
  first = generation_service.get_editor("a", jobs_repo, settings)
  generation_service.get_editor("b", jobs_repo, settings)
  generation_service.get_editor("a", jobs_repo, settings)

  generation_service.get_editor("c", jobs_repo, settings)

  assert generation_service.get_editor("a", jobs_repo, settings) is first
  assert set(generation_service._editors) == {"a", "c"}


@pytest.mark.anyio
async def test_busy_editors_are_never_evicted(jobs_repo, settings, monkeypatch) -> None:
  monkeypatch.setattr(generation_service, "MAX_EDITORS", 1)
  busy = generation_service.get_editor("busy", jobs_repo, settings)
  await busy.begin(ArticleConfig(main_keyword="in flight"))

  generation_service.get_editor("other", jobs_repo, settings)

  assert generation_service.get_editor("busy", jobs_repo, settings) is busy


@pytest.mark.anyio
async def test_finished_cluster_runs_are_capped(jobs_repo, keys_repo, settings, routed_model, monkeypatch) -> None:
  monkeypatch.setattr(generation_service, "MAX_FINISHED_RUNS", 2)
  key_service = ApiKeyService(keys_repo)
  runs = []
  for index in range(4):
    state = await generation_service.start_cluster(PLAN, jobs_repo=jobs_repo, key_service=key_service, settings=settings, background_tasks=BackgroundTasks())
    state.finished_at = index + 1
    runs.append(state)

  latest = await generation_service.start_cluster(PLAN, jobs_repo=jobs_repo, key_service=key_service, settings=settings, background_tasks=BackgroundTasks())

  assert [generation_service.get_cluster_run(run.id) for run in runs] == [None, None, runs[2], runs[3]]
  assert generation_service.get_cluster_run(latest.id) is latest


@pytest.mark.anyio
async def test_finished_bulk_runs_are_capped(jobs_repo, keys_repo, settings, routed_model, monkeypatch) -> None:
  monkeypatch.setattr(generation_service, "MAX_FINISHED_RUNS", 1)
  key_service = ApiKeyService(keys_repo)
  items = [BulkItem(keyword="k", title="T")]
  runs = []
  for index in range(3):
    state = await generation_service.start_bulk(items, BulkOptions(include_images=False), wordpress=None, jobs_repo=jobs_repo, key_service=key_service, settings=settings, background_tasks=BackgroundTasks())
    state.finished_at = index + 1
    runs.append(state)

  assert generation_service.get_bulk_run(runs[0].id) is None
  assert generation_service.get_bulk_run(runs[1].id) is runs[1]
  assert generation_service.get_bulk_run(runs[2].id) is runs[2]

from __future__ import annotations

import pytest

from astrawrite.jobs.cluster import (
  STATUS_COMPLETED,
  STATUS_FAILED,
  ClusterPage,
  ClusterPlan,
  ClusterRunner,
  InvalidClusterPlanError,
  build_cluster_article_config,
  build_queue,
  generate_topic_cluster,
  interlinking_instruction,
)

PLAN_OUTPUT = {
  "pillarPage": {"title": "The Complete Guide to Coffee", "keyword": "coffee"},
  "clusters": [
    {"title": "How to Brew Espresso", "keyword": "espresso", "linkToPillarAnchor": "coffee guide", "crossLinkSuggestion": "Choosing Coffee Beans"},
    {"title": "Choosing Coffee Beans", "keyword": "coffee beans", "linkToPillarAnchor": "complete coffee guide", "crossLinkSuggestion": "How to Brew Espresso"},
  ],
}


@pytest.fixture
def plan() -> ClusterPlan:
  return ClusterPlan.from_model_output(PLAN_OUTPUT, topic="coffee")


def test_build_queue_puts_pillar_first(plan: ClusterPlan) -> None:
  queue = build_queue(plan)
  assert [page.page_type for page in queue] == ["Pillar", "Cluster", "Cluster"]
  assert [page.title for page in queue] == ["The Complete Guide to Coffee", "How to Brew Espresso", "Choosing Coffee Beans"]


def test_interlinking_instruction_only_for_cluster_pages(plan: ClusterPlan) -> None:
  assert interlinking_instruction(plan, plan.pillar) == ""
  instruction = interlinking_instruction(plan, plan.clusters[0])
  assert '("The Complete Guide to Coffee")' in instruction
  assert 'anchor text "coffee guide"' in instruction
  assert 'link to "Choosing Coffee Beans"' in instruction


def test_cluster_article_config_defaults(plan: ClusterPlan) -> None:
  pillar_config = build_cluster_article_config(plan, plan.pillar)
  cluster_config = build_cluster_article_config(plan, plan.clusters[1])
  assert pillar_config.details_to_include == ""
  assert "The Complete Guide to Coffee" in cluster_config.details_to_include
  assert cluster_config.tone == "Authoritative"
  assert cluster_config.include_images is False
  assert cluster_config.connect_to_web is True


def test_plan_round_trips_to_camel_case(plan: ClusterPlan) -> None:
  data = plan.to_dict()
  assert data["pillarPage"] == PLAN_OUTPUT["pillarPage"]
  assert data["clusters"] == PLAN_OUTPUT["clusters"]


@pytest.mark.parametrize(
  "payload",
  [
    [],
    {"clusters": PLAN_OUTPUT["clusters"]},
    {"pillarPage": PLAN_OUTPUT["pillarPage"], "clusters": []},
    {"pillarPage": {"title": "", "keyword": "x"}, "clusters": PLAN_OUTPUT["clusters"]},
    {"pillarPage": PLAN_OUTPUT["pillarPage"], "clusters": ["not an object"]},
  ],
)
def test_invalid_plans_are_rejected(payload) -> None:
  with pytest.raises(InvalidClusterPlanError):
    ClusterPlan.from_model_output(payload)


@pytest.mark.anyio
async def test_generate_topic_cluster_validates_model_output(make_model) -> None:
  model = make_model(structured=PLAN_OUTPUT)
  plan = await generate_topic_cluster(model, "coffee")
  assert plan.topic == "coffee"
  assert plan.pillar == ClusterPage(title="The Complete Guide to Coffee", keyword="coffee", page_type="Pillar")
  assert len(plan.clusters) == 2


@pytest.mark.anyio
async def test_cluster_runner_writes_pages_in_order_with_interlinking(jobs_repo, settings, fake_model, plan: ClusterPlan) -> None:
  runner = ClusterRunner(jobs_repo=jobs_repo, settings=settings)
  finished = []

  run = await runner.run(plan, fake_model, on_job_finished=finished.append)

  assert [entry.status for entry in run.entries] == [STATUS_COMPLETED] * 3
  assert [job.title for job in finished] == [page.title for page in build_queue(plan)]
  prompts = [call["prompt"] for call in fake_model.stream_calls]
  assert "IMPORTANT INTERLINKING" not in prompts[0]
  assert all('"The Complete Guide to Coffee"' in prompt and "IMPORTANT INTERLINKING" in prompt for prompt in prompts[1:])

  pillar_job = await jobs_repo.get(run.entries[0].job_id)
  assert pillar_job.metadata == {"type": "Pillar"}
  assert pillar_job.content == "<p>Hello world</p>"
  assert run.is_finished


@pytest.mark.anyio
async def test_cluster_runner_marks_failed_pages(jobs_repo, settings, make_model, plan: ClusterPlan) -> None:
  model = make_model(chunks=["<p>half"], fail_after=1)
  runner = ClusterRunner(jobs_repo=jobs_repo, settings=settings)

  run = await runner.run(plan, model)

  assert [entry.status for entry in run.entries] == [STATUS_FAILED] * 3
  stored = await jobs_repo.get(run.entries[1].job_id)
  assert stored.status == "error"
  assert stored.content == "<p>half"


@pytest.mark.anyio
async def test_cluster_runner_stores_error_when_page_fails_before_streaming(jobs_repo, settings, fake_model, plan: ClusterPlan, monkeypatch) -> None:
  def _broken_prompt(_config):
    raise ValueError("prompt template missing")

  monkeypatch.setattr("astrawrite.jobs.cluster.build_article_prompt", _broken_prompt)
  runner = ClusterRunner(jobs_repo=jobs_repo, settings=settings)

  run = await runner.run(plan, fake_model)

  assert [entry.status for entry in run.entries] == [STATUS_FAILED] * 3
  assert run.entries[0].error == "prompt template missing"
  for entry in run.entries:
    stored = await jobs_repo.get(entry.job_id)
    assert stored.status == "error"
  assert fake_model.stream_calls == []

"""Coordinate editors, bulk runs, cluster runs and the one-shot content tools."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import BackgroundTasks

from astrawrite.ai import prompts
from astrawrite.ai.providers import AIModel, StructuredOutputError
from astrawrite.config import Settings
from astrawrite.jobs.aggregator import FinishCallback
from astrawrite.jobs.article import ArticleRunner
from astrawrite.jobs.bulk import BulkItem, BulkOptions, BulkRun, BulkRunInProgressError, BulkRunner
from astrawrite.jobs.cluster import ClusterPlan, ClusterRun, ClusterRunner, generate_topic_cluster
from astrawrite.jobs.models import GenerationJob
from astrawrite.schema.article import ArticleConfig
from astrawrite.schema.wordpress import WordPressConfig
from astrawrite.services.api_keys import ApiKeyService
from astrawrite.services.model_routing import resolve_model
from astrawrite.services.wordpress import WordPressPublisher
from astrawrite.storage.jobs_repo import JobsRepository
from astrawrite.utils.ids import generate_job_id

logger = logging.getLogger(__name__)

DEFAULT_EDITOR_ID = "default"
MAX_EDITORS = 64
MAX_FINISHED_RUNS = 50

_editors: dict[str, ArticleRunner] = {}
_bulk_runner: BulkRunner | None = None
_bulk_runs: dict[str, BulkRun] = {}
_cluster_runs: dict[str, ClusterRun] = {}


def reset_generation_state() -> None:
  """Forget every editor and run; used when repositories are rebuilt."""
  global _bulk_runner
  _editors.clear()
  _bulk_runs.clear()
  _cluster_runs.clear()
  _bulk_runner = None


def get_editor(editor_id: str, jobs_repo: JobsRepository, settings: Settings) -> ArticleRunner:
  """Return the runner for an editor, creating it on first use."""
  runner = _editors.pop(editor_id, None)
  if runner is None:
    _evict_idle_editors()
    runner = ArticleRunner(jobs_repo=jobs_repo, settings=settings)
  # Re-insert so the dict stays ordered from least to most recently used.
  _editors[editor_id] = runner
  return runner


def _evict_idle_editors() -> None:
  for editor_id in list(_editors):
    if len(_editors) < MAX_EDITORS:
      return
    if not _editors[editor_id].is_running:
      del _editors[editor_id]
      logger.debug("Evicted idle editor %s", editor_id)


def _prune_finished_runs(runs: dict[str, Any]) -> None:
  """Keep at most MAX_FINISHED_RUNS finished runs, dropping the oldest first."""
  finished = [run_id for run_id, run in runs.items() if run.is_finished]
  for run_id in finished[: max(0, len(finished) - MAX_FINISHED_RUNS)]:
    del runs[run_id]


def _get_bulk_runner(jobs_repo: JobsRepository, settings: Settings) -> BulkRunner:
  global _bulk_runner
  if _bulk_runner is None:
    _bulk_runner = BulkRunner(jobs_repo=jobs_repo, settings=settings)
  return _bulk_runner


async def start_article(config: ArticleConfig, *, editor_id: str, jobs_repo: JobsRepository, key_service: ApiKeyService, settings: Settings, background_tasks: BackgroundTasks) -> GenerationJob:
  """Claim an editor, store the job and stream the article in the background."""
  model = await resolve_model(key_service, settings, "stream")
  runner = get_editor(editor_id, jobs_repo, settings)
  job = await runner.begin(config)
  logger.info("Article job %s queued on editor %s for '%s'", job.id, editor_id, config.main_keyword)
  background_tasks.add_task(runner.run, job, config, model, on_finish=_usage_recorder(key_service))
  return job


def _usage_recorder(key_service: ApiKeyService) -> FinishCallback:
  async def _record(job: GenerationJob) -> None:
    if job.status == "completed":
      await key_service.record_usage(job)

  return _record


def _publisher_for(wordpress: WordPressConfig | None, settings: Settings) -> WordPressPublisher | None:
  if wordpress is None or not wordpress.is_configured:
    return None
  return WordPressPublisher(wordpress, timeout=settings.wordpress_timeout_seconds)


async def start_bulk(items: list[BulkItem], options: BulkOptions, *, wordpress: WordPressConfig | None, jobs_repo: JobsRepository, key_service: ApiKeyService, settings: Settings, background_tasks: BackgroundTasks) -> BulkRun:
  """Register a bulk run and process it in the background."""
  model = await resolve_model(key_service, settings, "stream")
  runner = _get_bulk_runner(jobs_repo, settings)

  # Check and register without awaiting in between so two requests cannot both pass.
  if runner.is_running or any(not run.is_finished for run in _bulk_runs.values()):
    raise BulkRunInProgressError("A bulk run is already in progress.")
  state = BulkRun.create(items, options)
  _bulk_runs[state.id] = state
  _prune_finished_runs(_bulk_runs)

  publisher = _publisher_for(wordpress, settings) if options.auto_publish else None
  if options.auto_publish and publisher is None:
    logger.warning("Bulk run %s requested auto publish without WordPress credentials; publishing is skipped.", state.id)

  background_tasks.add_task(runner.run, items, options, model, publisher=publisher, state=state, on_job_finished=key_service.record_usage)
  return state


def get_bulk_run(run_id: str) -> BulkRun | None:
  return _bulk_runs.get(run_id)


async def plan_topic_cluster(topic: str, *, key_service: ApiKeyService, settings: Settings) -> ClusterPlan:
  model = await resolve_model(key_service, settings, "text")
  return await generate_topic_cluster(model, topic)


async def start_cluster(plan: ClusterPlan, *, jobs_repo: JobsRepository, key_service: ApiKeyService, settings: Settings, background_tasks: BackgroundTasks) -> ClusterRun:
  """Register a cluster run on its own runner and execute it in the background."""
  model = await resolve_model(key_service, settings, "stream")
  runner = ClusterRunner(jobs_repo=jobs_repo, settings=settings)
  state = ClusterRun.create(plan)
  _cluster_runs[state.id] = state
  _prune_finished_runs(_cluster_runs)
  background_tasks.add_task(runner.run, plan, model, state=state, on_job_finished=key_service.record_usage)
  return state


def get_cluster_run(run_id: str) -> ClusterRun | None:
  return _cluster_runs.get(run_id)


async def create_image(model: AIModel, prompt: str, aspect_ratio: str, *, jobs_repo: JobsRepository, key_service: ApiKeyService) -> GenerationJob:
  """Generate a standalone image and keep it in the job history."""
  image_url = await model.generate_image(prompt, aspect_ratio=aspect_ratio)
  job = GenerationJob(id=generate_job_id(), title=prompt[:120], kind="image", status="completed", progress=100, image_url=image_url)
  await jobs_repo.save(job)
  await key_service.record_usage(job)
  return job


async def run_text_tool(model: AIModel, prompt: str) -> str:
  response = await model.generate(prompt)
  return response.content.strip()


async def analyze_seo(model: AIModel, content: str, keyword: str | None, *, jobs_repo: JobsRepository, key_service: ApiKeyService) -> dict[str, Any]:
  """Score content for SEO and store the report in the job history."""
  response = await model.generate_structured(prompts.build_seo_analysis_prompt(content, keyword), prompts.SEO_ANALYSIS_SCHEMA)
  report = response.content
  job = GenerationJob(
    id=generate_job_id(),
    title=f"SEO report: {keyword}" if keyword else "SEO report",
    content=json.dumps(report, ensure_ascii=False),
    kind="seo-report",
    status="completed",
    progress=100,
    metadata={"keyword": keyword} if keyword else {},
  )
  await jobs_repo.save(job)
  await key_service.record_usage(job)
  return report


async def run_structured_tool(model: AIModel, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
  """Run a one-shot JSON tool; the reply must be an object matching ``schema``."""
  response = await model.generate_structured(prompt, schema)
  if not isinstance(response.content, dict):
    raise StructuredOutputError("The model returned an unexpected response shape.")
  return response.content


async def generate_meta_tags(model: AIModel, content: str, keyword: str | None) -> dict[str, Any]:
  return await run_structured_tool(model, prompts.build_meta_tags_prompt(content, keyword), prompts.META_TAGS_SCHEMA)

"""Single-article generation for one editor."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from html import escape

from astrawrite.ai.prompts import build_article_prompt, build_image_prompt, build_system_instruction, build_title_prompt
from astrawrite.ai.providers.base import AIModel
from astrawrite.config import Settings
from astrawrite.jobs.aggregator import FinishCallback, SnapshotCallback, StreamAggregator, maybe_await, stream_source
from astrawrite.jobs.models import GenerationJob
from astrawrite.jobs.progress import ProgressEstimator, estimator_for_size
from astrawrite.schema.article import ArticleConfig
from astrawrite.storage.jobs_repo import JobsRepository
from astrawrite.utils.ids import generate_job_id

logger = logging.getLogger(__name__)

_CODE_FENCE_PATTERN = re.compile(r"```html|```", re.IGNORECASE)


class EditorBusyError(RuntimeError):
  """Raised when an editor already has a generation in flight."""


def strip_code_fences(text: str) -> str:
  """Drop markdown code fences the model wraps around HTML output."""
  return _CODE_FENCE_PATTERN.sub("", text).strip()


async def generate_title(model: AIModel, keyword: str) -> str:
  """Ask the model for the best SEO title for a keyword."""
  response = await model.generate(build_title_prompt(keyword))
  title = response.content.strip().strip("\"'").strip()
  if not title:
    raise RuntimeError(f"Model returned an empty title for '{keyword}'.")
  return title


def image_seed(image_url: str, title: str) -> str:
  """Return the hero image markup that opens an article body."""
  return f'<img src="{image_url}" alt="{escape(title, quote=True)}" style="width:100%; border-radius:32px; margin-bottom:3rem;" />\n\n'


async def generate_hero_image(model: AIModel, title: str, style: str, *, aspect_ratio: str = "16:9") -> str | None:
  """Generate one hero image; failures are logged and yield None."""
  if style == "None":
    return None
  try:
    return await model.generate_image(build_image_prompt(title, style), aspect_ratio=aspect_ratio)
  except Exception as exc:  # noqa: BLE001
    logger.warning("Hero image generation failed for '%s': %s", title, exc)
    return None


async def seed_hero_image(job: GenerationJob, model: AIModel, style: str, jobs_repo: JobsRepository, *, aspect_ratio: str = "16:9") -> None:
  """Attach a hero image to ``job`` and seed its content with the image tag."""
  image_url = await generate_hero_image(model, job.title, style, aspect_ratio=aspect_ratio)
  if image_url is None:
    return
  job.image_url = image_url
  job.content = image_seed(image_url, job.title)
  await jobs_repo.update(job.id, image_url=image_url, content=job.content)


def store_snapshots(jobs_repo: JobsRepository) -> SnapshotCallback:
  """Build a snapshot callback that writes content and progress to the store."""

  async def _on_snapshot(job_id: str, content: str, progress: int) -> None:
    await jobs_repo.update(job_id, content=content, progress=progress)

  return _on_snapshot


def store_terminal_state(jobs_repo: JobsRepository) -> FinishCallback:
  """Build a finish callback that persists the terminal job state."""

  async def _on_finish(job: GenerationJob) -> None:
    await jobs_repo.update(job.id, content=job.content, status=job.status, progress=job.progress)

  return _on_finish


async def persist_job_failure(job: GenerationJob, jobs_repo: JobsRepository) -> None:
  """Store ``error`` for a job that failed before the aggregator finished it."""
  if job.status != "generating":
    return
  job.status = "error"
  try:
    await jobs_repo.update(job.id, status="error")
  except Exception as exc:  # noqa: BLE001
    logger.error("Could not record failure for job %s: %s", job.id, exc, exc_info=True)


class ArticleRunner:
  """Generate articles for one editor, one at a time.

  ``begin`` claims the editor and stores a ``generating`` job; ``run`` performs
  the generation and releases the editor when it ends. Callers must follow a
  successful ``begin`` with ``run`` for the same job.
  """

  def __init__(self, *, jobs_repo: JobsRepository, settings: Settings, clock: Callable[[], float] = time.monotonic) -> None:
    self._jobs_repo = jobs_repo
    self._settings = settings
    self._claimed = False
    self._estimator: ProgressEstimator = estimator_for_size("Large", settings)
    self._aggregator = StreamAggregator(
      on_snapshot=store_snapshots(jobs_repo),
      on_finish=store_terminal_state(jobs_repo),
      throttle_interval=settings.article_throttle_seconds,
      estimate_progress=lambda length: self._estimator(length),
      finalize=strip_code_fences,
      clock=clock,
    )

  @property
  def is_running(self) -> bool:
    return self._claimed or self._aggregator.is_running

  async def begin(self, config: ArticleConfig) -> GenerationJob:
    """Claim the editor and persist a new generating job."""
    if self.is_running:
      raise EditorBusyError("This editor is already generating an article.")

    self._claimed = True
    job = GenerationJob(id=generate_job_id(), title=config.title or config.main_keyword, kind="article", metadata={"keyword": config.main_keyword})
    try:
      await self._jobs_repo.save(job)
    except Exception:
      self._claimed = False
      raise
    return job

  async def run(self, job: GenerationJob, config: ArticleConfig, model: AIModel, *, on_finish: FinishCallback | None = None) -> GenerationJob:
    """Generate the article body for ``job`` and release the editor."""
    try:
      self._estimator = estimator_for_size(config.article_size, self._settings)
      if config.include_images:
        await seed_hero_image(job, model, config.image_style, self._jobs_repo, aspect_ratio=config.image_size)

      chunks = model.stream(build_article_prompt(config), system_instruction=build_system_instruction(config), web_search=config.connect_to_web)
      await self._aggregator.start(job, stream_source(chunks))
    except Exception as exc:
      # Failures before streaming starts still leave the job in a terminal state.
      logger.error("Article generation for job %s failed before streaming: %s", job.id, exc, exc_info=True)
      job.status = "error"
      await self._jobs_repo.update(job.id, status="error")
    finally:
      self._claimed = False

    if on_finish is not None:
      await maybe_await(on_finish(job))
    return job

"""Sequential bulk generation from a keyword list."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

from astrawrite.ai.prompts import build_article_prompt, build_system_instruction
from astrawrite.ai.providers.base import AIModel
from astrawrite.config import Settings
from astrawrite.jobs.aggregator import FinishCallback, StreamAggregator, maybe_await, stream_source
from astrawrite.jobs.article import generate_title, persist_job_failure, seed_hero_image, store_snapshots, store_terminal_state, strip_code_fences
from astrawrite.jobs.models import GenerationJob
from astrawrite.jobs.progress import ProgressEstimator, estimator_for_size
from astrawrite.schema.article import ArticleConfig, ArticleSize
from astrawrite.schema.wordpress import PostStatus, PostType
from astrawrite.storage.jobs_repo import JobsRepository
from astrawrite.utils.ids import generate_bulk_job_id, generate_run_id, now_millis

logger = logging.getLogger(__name__)

_COLUMN_SEPARATOR = re.compile(r"[,\t]")
_BULK_IMAGE_STYLE = "Photo-realistic"
# Bulk estimates stop short of the single-article cap; the tail is usually FAQ and conclusion.
BULK_PROGRESS_CAP = 95

STATUS_QUEUED = "Queued"
STATUS_PROCESSING = "Processing..."
STATUS_PUBLISHING = "Publishing to WP..."
STATUS_COMPLETED = "Completed"
STATUS_FAILED = "Failed"


class BulkRunInProgressError(RuntimeError):
  """Raised when a bulk run is started while another is still processing."""


class Publisher(Protocol):
  """Anything that can publish a finished article and return its URL."""

  async def publish(self, title: str, content: str, image_url: str | None = None, *, post_type: PostType | None = None, status: PostStatus | None = None) -> str:
    """Publish one article."""


@dataclass(frozen=True)
class BulkItem:
  """One row of bulk input."""

  keyword: str
  title: str | None = None


@dataclass(frozen=True)
class BulkOptions:
  """Settings shared by every article in a bulk run."""

  language: str = "English (US)"
  article_size: ArticleSize = "Medium"
  include_images: bool = True
  humanize: bool = True
  connect_to_web: bool = True
  auto_publish: bool = False
  post_type: PostType = "posts"
  post_status: PostStatus = "draft"
  interval_minutes: float = 0

  def __post_init__(self) -> None:
    if self.interval_minutes < 0:
      raise ValueError("Interval between bulk jobs must not be negative.")


@dataclass
class BulkLogEntry:
  """Per-keyword progress line shown while a bulk run executes."""

  keyword: str
  title: str | None = None
  status: str = STATUS_QUEUED
  job_id: str | None = None
  wp_url: str | None = None
  error: str | None = None


@dataclass
class BulkRun:
  """Observable state of one bulk run."""

  id: str
  options: BulkOptions
  entries: list[BulkLogEntry]
  started_at: int = field(default_factory=now_millis)
  finished_at: int | None = None
  next_start_at: int | None = None

  @classmethod
  def create(cls, items: Iterable[BulkItem], options: BulkOptions) -> BulkRun:
    return cls(id=generate_run_id(), options=options, entries=[BulkLogEntry(keyword=item.keyword, title=item.title) for item in items])

  @property
  def is_finished(self) -> bool:
    return self.finished_at is not None

  def to_dict(self) -> dict[str, Any]:
    return asdict(self)


def parse_bulk_input(text: str) -> list[BulkItem]:
  """Parse pasted or uploaded keyword rows.

  Each non-empty line is ``keyword[,|\\t]title``; the title is optional. A first
  line mentioning ``keyword`` is treated as a header row and skipped.
  """
  lines = text.splitlines()
  if lines and "keyword" in lines[0].lower():
    lines = lines[1:]

  items: list[BulkItem] = []
  for line in lines:
    if not line.strip():
      continue
    columns = _COLUMN_SEPARATOR.split(line)
    keyword = columns[0].strip()
    if not keyword:
      continue
    title = columns[1].strip() if len(columns) > 1 else ""
    items.append(BulkItem(keyword=keyword, title=title or None))
  return items


def format_wait_status(interval_minutes: float) -> str:
  return f"Scheduled (Waiting {interval_minutes:g}m)"


def build_bulk_article_config(keyword: str, title: str, options: BulkOptions) -> ArticleConfig:
  """Expand bulk options into a full article options record."""
  return ArticleConfig(
    main_keyword=keyword,
    title=title,
    language=options.language,
    article_size=options.article_size,
    tone="Professional",
    ai_content_cleaning="Standard",
    humanize=options.humanize,
    include_images=options.include_images,
    image_style=_BULK_IMAGE_STYLE,
    connect_to_web=options.connect_to_web,
    wp_status=options.post_status,
    wp_post_type=options.post_type,
  )


class BulkRunner:
  """Process bulk items strictly one after another.

  Every item gets its own job; a failure marks only that item ``Failed`` and
  the run continues. ``sleep`` is injected so schedules can be tested without
  waiting.
  """

  def __init__(
    self,
    *,
    jobs_repo: JobsRepository,
    settings: Settings,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
  ) -> None:
    self._jobs_repo = jobs_repo
    self._settings = settings
    self._sleep = sleep
    self._running = False
    self._estimator: ProgressEstimator = estimator_for_size("Medium", settings, cap=BULK_PROGRESS_CAP)
    self._aggregator = StreamAggregator(
      on_snapshot=store_snapshots(jobs_repo),
      on_finish=store_terminal_state(jobs_repo),
      throttle_interval=settings.bulk_throttle_seconds,
      estimate_progress=lambda length: self._estimator(length),
      finalize=strip_code_fences,
      clock=clock,
    )

  @property
  def is_running(self) -> bool:
    return self._running

  async def run(
    self,
    items: list[BulkItem],
    options: BulkOptions,
    model: AIModel,
    *,
    publisher: Publisher | None = None,
    state: BulkRun | None = None,
    on_job_finished: FinishCallback | None = None,
  ) -> BulkRun:
    """Run every item in order and return the final run state."""
    if self._running:
      raise BulkRunInProgressError("A bulk run is already in progress.")

    self._running = True
    state = state or BulkRun.create(items, options)
    try:
      self._estimator = estimator_for_size(options.article_size, self._settings, cap=BULK_PROGRESS_CAP)
      logger.info("Bulk run %s started with %d items", state.id, len(items))
      for index, item in enumerate(items):
        await self._wait_before(index, state)
        await self._process_item(index, item, state, model, publisher, on_job_finished)
    finally:
      # Items never reached (for example after cancellation) must not look pending.
      for entry in state.entries:
        if entry.status not in {STATUS_COMPLETED, STATUS_FAILED}:
          entry.status = STATUS_FAILED
      state.next_start_at = None
      state.finished_at = now_millis()
      self._running = False

    completed = sum(1 for entry in state.entries if entry.status == STATUS_COMPLETED)
    logger.info("Bulk run %s finished: %d/%d completed", state.id, completed, len(state.entries))
    return state

  async def _wait_before(self, index: int, state: BulkRun) -> None:
    interval = state.options.interval_minutes
    if index == 0 or interval <= 0:
      return
    state.entries[index].status = format_wait_status(interval)
    state.next_start_at = now_millis() + int(interval * 60_000)
    await self._sleep(interval * 60)
    state.next_start_at = None

  async def _process_item(
    self,
    index: int,
    item: BulkItem,
    state: BulkRun,
    model: AIModel,
    publisher: Publisher | None,
    on_job_finished: FinishCallback | None,
  ) -> None:
    entry = state.entries[index]
    entry.status = STATUS_PROCESSING
    options = state.options
    job: GenerationJob | None = None

    try:
      title = item.title or await generate_title(model, item.keyword)
      entry.title = title
      job = GenerationJob(id=generate_bulk_job_id(index), title=title, kind="article", metadata={"keyword": item.keyword, "bulkRunId": state.id})
      entry.job_id = job.id
      await self._jobs_repo.save(job)

      if options.include_images:
        await seed_hero_image(job, model, _BULK_IMAGE_STYLE, self._jobs_repo)

      config = build_bulk_article_config(item.keyword, title, options)
      chunks = model.stream(build_article_prompt(config), system_instruction=build_system_instruction(config), web_search=config.connect_to_web)
      await self._aggregator.start(job, stream_source(chunks))
      if job.status != "completed":
        raise RuntimeError(f"Generation for '{item.keyword}' ended with status {job.status}.")

      if on_job_finished is not None:
        await maybe_await(on_job_finished(job))

      if options.auto_publish and publisher is not None:
        entry.status = STATUS_PUBLISHING
        wp_url = await publisher.publish(title, job.content, job.image_url, post_type=options.post_type, status=options.post_status)
        job.wp_url = wp_url
        entry.wp_url = wp_url
        await self._jobs_repo.update(job.id, wp_url=wp_url)

      entry.status = STATUS_COMPLETED
    except Exception as exc:  # noqa: BLE001
      logger.warning("Bulk item '%s' failed: %s", item.keyword, exc)
      entry.status = STATUS_FAILED
      entry.error = str(exc)
      if job is not None:
        await persist_job_failure(job, self._jobs_repo)

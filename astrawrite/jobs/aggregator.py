"""Aggregate streamed text fragments into a job and publish throttled snapshots."""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import AsyncIterable, Awaitable, Callable
from typing import Any

from astrawrite.jobs.models import GenerationJob
from astrawrite.jobs.progress import MAX_STREAMING_PROGRESS, ProgressEstimator

ChunkHandler = Callable[[str], Awaitable[None]]
SourceInvocation = Callable[[ChunkHandler], Awaitable[None]]
SnapshotCallback = Callable[[str, str, int], Any]
FinishCallback = Callable[[GenerationJob], Any]
ContentFinalizer = Callable[[str], str]

DEFAULT_THROTTLE_SECONDS = 0.5
DEFAULT_EXPECTED_LENGTH = 6000

logger = logging.getLogger(__name__)


async def maybe_await(result: Any) -> None:
  # Callbacks may be plain functions or coroutine functions.
  if inspect.isawaitable(result):
    await result


def _default_estimate(buffer_length: int) -> int:
  return min(MAX_STREAMING_PROGRESS, buffer_length * 100 // DEFAULT_EXPECTED_LENGTH)


def stream_source(chunks: AsyncIterable[str]) -> SourceInvocation:
  """Adapt an async iterator of text chunks into a source invocation."""

  async def _invoke(on_chunk: ChunkHandler) -> None:
    async for chunk in chunks:
      await on_chunk(chunk)

  return _invoke


class _StreamBuffer:
  """Append-only text buffer owned by a single aggregation run."""

  def __init__(self, seed: str = "") -> None:
    self._text = seed

  def append(self, fragment: str) -> None:
    self._text += fragment

  @property
  def text(self) -> str:
    return self._text

  def __len__(self) -> int:
    return len(self._text)


class StreamAggregator:
  """Bridge a chunked generation source to a job with rate-limited snapshots.

  One instance corresponds to one logical editor. While a run is active a
  second ``start`` call returns immediately without touching either job.

  Snapshots are pushed through ``on_snapshot(job_id, content, progress)`` at
  most once per ``throttle_interval`` seconds, measured with the injected
  ``clock``. When the source is exhausted a final snapshot carries the full
  content with progress 100 and the job becomes ``completed``. When the source
  raises, the job becomes ``error`` and keeps everything accumulated so far.
  ``on_finish(job)`` is called once the job reaches a terminal status.
  """

  def __init__(
    self,
    *,
    on_snapshot: SnapshotCallback,
    on_finish: FinishCallback | None = None,
    throttle_interval: float = DEFAULT_THROTTLE_SECONDS,
    estimate_progress: ProgressEstimator | None = None,
    finalize: ContentFinalizer | None = None,
    clock: Callable[[], float] = time.monotonic,
  ) -> None:
    if throttle_interval < 0:
      raise ValueError("Throttle interval must not be negative.")
    self._on_snapshot = on_snapshot
    self._on_finish = on_finish
    self._throttle_interval = throttle_interval
    self._estimate_progress = estimate_progress or _default_estimate
    self._finalize = finalize
    self._clock = clock
    self._running = False

  @property
  def is_running(self) -> bool:
    """Return True while a generation is in flight on this instance."""
    return self._running

  async def start(self, job: GenerationJob, source: SourceInvocation) -> None:
    """Run one generation for ``job``; a no-op while another run is active."""

    if self._running:
      logger.debug("Aggregator busy; ignoring start for job %s", job.id)
      return

    # Claim the guard before the first suspension point.
    self._running = True
    try:
      await self._run(job, source)
    finally:
      self._running = False

  async def _run(self, job: GenerationJob, source: SourceInvocation) -> None:
    buffer = _StreamBuffer(job.content)
    last_emitted_at: float | None = None
    job.status = "generating"

    async def on_chunk(fragment: str) -> None:
      nonlocal last_emitted_at
      buffer.append(fragment)
      job.content = buffer.text

      now = self._clock()
      if last_emitted_at is not None and now - last_emitted_at < self._throttle_interval:
        return

      # Clamp so the estimate never moves backwards or reaches 100 mid-stream.
      estimate = min(MAX_STREAMING_PROGRESS, self._estimate_progress(len(buffer)))
      job.progress = max(job.progress, estimate)
      last_emitted_at = now
      await maybe_await(self._on_snapshot(job.id, job.content, job.progress))

    try:
      await source(on_chunk)
      await self._emit_final(job, buffer)
    except Exception as exc:
      job.status = "error"
      logger.warning("Generation failed for job %s after %d characters: %s", job.id, len(buffer), exc, exc_info=True)
    else:
      job.status = "completed"
      logger.info("Generation completed for job %s (%d characters)", job.id, len(job.content))

    if self._on_finish is not None:
      await maybe_await(self._on_finish(job))

  async def _emit_final(self, job: GenerationJob, buffer: _StreamBuffer) -> None:
    content = buffer.text
    if self._finalize is not None:
      content = self._finalize(content)

    # The job only takes the final values once the snapshot has been accepted.
    await maybe_await(self._on_snapshot(job.id, content, 100))
    job.content = content
    job.progress = 100

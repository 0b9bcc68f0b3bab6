"""Storage interfaces for generation jobs."""

from __future__ import annotations

from typing import Any, Protocol

from astrawrite.jobs.models import GenerationJob, JobStatus


class JobsRepository(Protocol):
  """Repository contract for job history persistence."""

  async def save(self, job: GenerationJob) -> None:
    """Persist a new job record."""

  async def get(self, job_id: str) -> GenerationJob | None:
    """Fetch a job by identifier."""

  async def update(
    self,
    job_id: str,
    *,
    title: str | None = None,
    content: str | None = None,
    status: JobStatus | None = None,
    progress: int | None = None,
    image_url: str | None = None,
    wp_url: str | None = None,
    metadata: dict[str, Any] | None = None,
  ) -> GenerationJob | None:
    """Apply partial updates to a job."""

  async def delete(self, job_id: str) -> bool:
    """Remove a job; return False when it did not exist."""

  async def list_jobs(self, limit: int = 50, offset: int = 0) -> list[GenerationJob]:
    """Return jobs ordered from newest to oldest."""

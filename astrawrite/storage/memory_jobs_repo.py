"""In-process job history store used when no database is configured."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from astrawrite.jobs.models import GenerationJob, JobStatus
from astrawrite.storage.jobs_repo import JobsRepository


class InMemoryJobsRepository(JobsRepository):
  """Keep job records in a dict; every read returns a detached copy."""

  def __init__(self) -> None:
    self._jobs: dict[str, GenerationJob] = {}

  async def save(self, job: GenerationJob) -> None:
    self._jobs[job.id] = replace(job, metadata=dict(job.metadata))

  async def get(self, job_id: str) -> GenerationJob | None:
    record = self._jobs.get(job_id)
    if record is None:
      return None
    return replace(record, metadata=dict(record.metadata))

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
    record = self._jobs.get(job_id)
    if record is None:
      return None

    fields = {"title": title, "content": content, "status": status, "progress": progress, "image_url": image_url, "wp_url": wp_url, "metadata": metadata}
    # Merge only the provided fields to mimic partial persistence.
    updated = replace(record, **{key: value for key, value in fields.items() if value is not None})
    self._jobs[job_id] = updated
    return replace(updated, metadata=dict(updated.metadata))

  async def delete(self, job_id: str) -> bool:
    return self._jobs.pop(job_id, None) is not None

  async def list_jobs(self, limit: int = 50, offset: int = 0) -> list[GenerationJob]:
    ordered = sorted(self._jobs.values(), key=lambda job: job.created_at, reverse=True)
    return [replace(job, metadata=dict(job.metadata)) for job in ordered[offset : offset + limit]]

"""Postgres-backed repository for generation jobs using SQLAlchemy."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from astrawrite.core.database import get_session_factory
from astrawrite.jobs.models import GenerationJob, JobStatus
from astrawrite.schema.sql import GeneratedContent
from astrawrite.storage.jobs_repo import JobsRepository


class PostgresJobsRepository(JobsRepository):
  """Persist job history to Postgres using SQLAlchemy."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def save(self, job: GenerationJob) -> None:
    async with self._session_factory() as session:
      row = GeneratedContent(
        id=job.id,
        title=job.title,
        content=job.content,
        kind=job.kind,
        status=job.status,
        progress=job.progress,
        image_url=job.image_url,
        wp_url=job.wp_url,
        metadata_json=dict(job.metadata),
        created_at=job.created_at,
      )
      session.add(row)
      await session.commit()

  async def get(self, job_id: str) -> GenerationJob | None:
    async with self._session_factory() as session:
      row = await session.get(GeneratedContent, job_id)
      if row is None:
        return None
      return self._model_to_record(row)

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
    async with self._session_factory() as session:
      row = await session.get(GeneratedContent, job_id)
      if row is None:
        return None
      if title is not None:
        row.title = title
      if content is not None:
        row.content = content
      if status is not None:
        row.status = status
      if progress is not None:
        row.progress = progress
      if image_url is not None:
        row.image_url = image_url
      if wp_url is not None:
        row.wp_url = wp_url
      if metadata is not None:
        row.metadata_json = dict(metadata)
      await session.commit()
      return self._model_to_record(row)

  async def delete(self, job_id: str) -> bool:
    async with self._session_factory() as session:
      row = await session.get(GeneratedContent, job_id)
      if row is None:
        return False
      await session.delete(row)
      await session.commit()
      return True

  async def list_jobs(self, limit: int = 50, offset: int = 0) -> list[GenerationJob]:
    async with self._session_factory() as session:
      stmt = select(GeneratedContent).order_by(GeneratedContent.created_at.desc()).limit(limit).offset(offset)
      result = await session.execute(stmt)
      return [self._model_to_record(row) for row in result.scalars().all()]

  @staticmethod
  def _model_to_record(row: GeneratedContent) -> GenerationJob:
    return GenerationJob(
      id=row.id,
      title=row.title,
      content=row.content,
      status=row.status,  # type: ignore[arg-type]
      progress=row.progress,
      kind=row.kind,  # type: ignore[arg-type]
      created_at=row.created_at,
      image_url=row.image_url,
      wp_url=row.wp_url,
      metadata=dict(row.metadata_json or {}),
    )

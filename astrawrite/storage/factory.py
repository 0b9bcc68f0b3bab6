from __future__ import annotations

import logging

from astrawrite.config import Settings
from astrawrite.storage.api_keys_repo import ApiKeysRepository, InMemoryApiKeysRepository
from astrawrite.storage.jobs_repo import JobsRepository
from astrawrite.storage.memory_jobs_repo import InMemoryJobsRepository

logger = logging.getLogger(__name__)

_jobs_repo: JobsRepository | None = None
_keys_repo: ApiKeysRepository | None = None


def _get_jobs_repo(settings: Settings) -> JobsRepository:
  """Return the process-wide jobs repository."""
  global _jobs_repo
  if _jobs_repo is None:
    # Fall back to process memory when no database is configured.
    if settings.pg_dsn:
      from astrawrite.storage.postgres_jobs_repo import PostgresJobsRepository

      _jobs_repo = PostgresJobsRepository()
    else:
      logger.warning("ASTRAWRITE_PG_DSN is not set; job history is kept in memory only.")
      _jobs_repo = InMemoryJobsRepository()
  return _jobs_repo


def _get_keys_repo(settings: Settings) -> ApiKeysRepository:
  """Return the process-wide API keys repository."""
  global _keys_repo
  if _keys_repo is None:
    if settings.pg_dsn:
      from astrawrite.storage.postgres_api_keys_repo import PostgresApiKeysRepository

      _keys_repo = PostgresApiKeysRepository()
    else:
      _keys_repo = InMemoryApiKeysRepository()
  return _keys_repo


def reset_repositories() -> None:
  """Drop cached repositories so the next lookup rebuilds them."""
  global _jobs_repo, _keys_repo
  _jobs_repo = None
  _keys_repo = None

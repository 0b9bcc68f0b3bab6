"""Provider key registry: selection, rotation and usage tracking."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from astrawrite.jobs.models import GenerationJob
from astrawrite.schema.api_keys import AiProvider, ApiKeyConfig
from astrawrite.storage.api_keys_repo import ApiKeysRepository
from astrawrite.utils.ids import generate_key_id, now_millis

logger = logging.getLogger(__name__)

# Job kinds that count against a key and trigger rotation.
TRACKED_KINDS = frozenset({"article", "image", "seo-report"})


class ApiKeyNotFoundError(LookupError):
  """Raised when a key id does not exist."""


class ApiKeyService:
  """Manage stored provider keys; at most one key is active at a time."""

  def __init__(self, repo: ApiKeysRepository) -> None:
    self._repo = repo
    self._lock = asyncio.Lock()

  @property
  def repo(self) -> ApiKeysRepository:
    return self._repo

  async def list_keys(self) -> list[ApiKeyConfig]:
    return await self._repo.list_keys()

  async def get_active(self) -> ApiKeyConfig | None:
    """Return the active key, if any."""
    for record in await self._repo.list_keys():
      if record.is_active:
        return record
    return None

  async def add(self, label: str, key: str, provider: AiProvider) -> ApiKeyConfig:
    """Store a new key; the first key stored becomes active."""
    async with self._lock:
      existing = await self._repo.list_keys()
      record = ApiKeyConfig(id=generate_key_id(), label=label, key=key, provider=provider, is_active=not existing)
      await self._repo.add(record)
    logger.info("Added %s key '%s' (active=%s)", provider, label, record.is_active)
    return record

  async def delete(self, key_id: str) -> None:
    """Remove a key; when the active key goes, the first remaining key takes over."""
    async with self._lock:
      if not await self._repo.delete(key_id):
        raise ApiKeyNotFoundError(key_id)
      remaining = await self._repo.list_keys()
      if remaining and not any(record.is_active for record in remaining):
        await self._repo.save(replace(remaining[0], is_active=True))
        logger.info("Active key removed; '%s' is now active", remaining[0].label)

  async def select(self, key_id: str) -> ApiKeyConfig:
    """Make exactly one key active."""
    async with self._lock:
      records = await self._repo.list_keys()
      target = next((record for record in records if record.id == key_id), None)
      if target is None:
        raise ApiKeyNotFoundError(key_id)
      for record in records:
        should_be_active = record.id == key_id
        if record.is_active != should_be_active:
          await self._repo.save(replace(record, is_active=should_be_active))
    return replace(target, is_active=True)

  async def record_usage(self, job: GenerationJob) -> None:
    """Count a saved job against the active key, then rotate to the next key."""
    if job.kind not in TRACKED_KINDS:
      return

    async with self._lock:
      records = await self._repo.list_keys()
      active_index = next((index for index, record in enumerate(records) if record.is_active), None)
      if active_index is None:
        return

      active = records[active_index]
      articles = active.articles_generated + 1 if job.kind == "article" else active.articles_generated
      records[active_index] = replace(active, usage_count=active.usage_count + 1, articles_generated=articles, last_used=now_millis())
      await self._repo.save(records[active_index])

      if len(records) > 1:
        next_index = (active_index + 1) % len(records)
        await self._repo.save(replace(records[active_index], is_active=False))
        await self._repo.save(replace(records[next_index], is_active=True))
        logger.debug("Rotated active key from '%s' to '%s'", active.label, records[next_index].label)

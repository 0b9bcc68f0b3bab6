"""Shared FastAPI dependencies for storage, key management and model resolution."""

from __future__ import annotations

from fastapi import Depends

from astrawrite.ai.providers import AIModel
from astrawrite.config import Settings, get_settings
from astrawrite.services.api_keys import ApiKeyService
from astrawrite.services.model_routing import resolve_model
from astrawrite.storage.api_keys_repo import ApiKeysRepository
from astrawrite.storage.factory import _get_jobs_repo, _get_keys_repo
from astrawrite.storage.jobs_repo import JobsRepository


def get_jobs_repo(settings: Settings = Depends(get_settings)) -> JobsRepository:  # noqa: B008
  return _get_jobs_repo(settings)


def get_keys_repo(settings: Settings = Depends(get_settings)) -> ApiKeysRepository:  # noqa: B008
  return _get_keys_repo(settings)


_key_service: ApiKeyService | None = None


def get_key_service(repo: ApiKeysRepository = Depends(get_keys_repo)) -> ApiKeyService:  # noqa: B008
  """Return one shared service per key store so its lock serializes every mutation."""
  global _key_service
  if _key_service is None or _key_service.repo is not repo:
    _key_service = ApiKeyService(repo)
  return _key_service


async def get_text_model(key_service: ApiKeyService = Depends(get_key_service), settings: Settings = Depends(get_settings)) -> AIModel:  # noqa: B008
  """Resolve a model for short, non-streaming calls from the active key."""
  return await resolve_model(key_service, settings, "text")


async def get_stream_model(key_service: ApiKeyService = Depends(get_key_service), settings: Settings = Depends(get_settings)) -> AIModel:  # noqa: B008
  """Resolve a model for long-form streaming from the active key."""
  return await resolve_model(key_service, settings, "stream")

from __future__ import annotations

from typing import Literal

from astrawrite.ai.providers import AIModel, GeminiProvider, ModelConfigurationError, OpenRouterProvider
from astrawrite.config import Settings
from astrawrite.schema.api_keys import ApiKeyConfig
from astrawrite.services.api_keys import ApiKeyService

ModelPurpose = Literal["stream", "text"]

_GEMINI_PROVIDER = "GEMINI"
_OPENROUTER_PROVIDER = "OPENROUTER"


def _gemini_model_name(purpose: ModelPurpose, settings: Settings) -> str:
  """Long-form streaming uses the stronger model; short calls use the fast one."""
  if purpose == "stream":
    return settings.gemini_stream_model
  return settings.gemini_text_model


def build_model(record: ApiKeyConfig, settings: Settings, purpose: ModelPurpose = "text") -> AIModel:
  """Build a model client for a stored key."""
  if record.provider == _GEMINI_PROVIDER:
    provider = GeminiProvider(record.key, image_model=settings.gemini_image_model)
    return provider.get_model(_gemini_model_name(purpose, settings))
  if record.provider == _OPENROUTER_PROVIDER:
    openrouter = OpenRouterProvider(record.key, base_url=settings.openrouter_base_url, http_referer=settings.openrouter_http_referer, title=settings.openrouter_title)
    return openrouter.get_model(settings.openrouter_model)
  raise ModelConfigurationError(f"Unsupported provider '{record.provider}'.")


async def resolve_model(key_service: ApiKeyService, settings: Settings, purpose: ModelPurpose = "text") -> AIModel:
  """Return a model client for the active key."""
  active = await key_service.get_active()
  if active is None:
    raise ModelConfigurationError("No active API key selected.")
  return build_model(active, settings, purpose)

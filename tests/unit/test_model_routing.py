from __future__ import annotations

from dataclasses import replace

import pytest

from astrawrite.ai.providers import GeminiModel, ModelConfigurationError, OpenRouterModel
from astrawrite.schema.api_keys import ApiKeyConfig
from astrawrite.services.api_keys import ApiKeyService
from astrawrite.services.model_routing import build_model, resolve_model


def _record(provider: str) -> ApiKeyConfig:
  return ApiKeyConfig(id="k", label="key", key="secret-key-value", provider=provider, is_active=True)


def test_gemini_key_uses_stream_and_text_models(settings) -> None:
  tuned = replace(settings, gemini_stream_model="gemini-2.5-pro", gemini_text_model="gemini-2.5-flash")

  stream_model = build_model(_record("GEMINI"), tuned, "stream")
  text_model = build_model(_record("GEMINI"), tuned, "text")

  assert isinstance(stream_model, GeminiModel)
  assert stream_model.name == "gemini-2.5-pro"
  assert text_model.name == "gemini-2.5-flash"


def test_openrouter_key_uses_configured_slug(settings) -> None:
  model = build_model(_record("OPENROUTER"), replace(settings, openrouter_model="meta-llama/llama-3.1-8b-instruct"), "stream")
  assert isinstance(model, OpenRouterModel)
  assert model.name == "meta-llama/llama-3.1-8b-instruct"


def test_unknown_provider_is_rejected(settings) -> None:
  with pytest.raises(ModelConfigurationError):
    build_model(_record("ANTHROPIC"), settings)


@pytest.mark.anyio
async def test_resolve_model_requires_active_key(keys_repo, settings) -> None:
  with pytest.raises(ModelConfigurationError, match="No active API key"):
    await resolve_model(ApiKeyService(keys_repo), settings)

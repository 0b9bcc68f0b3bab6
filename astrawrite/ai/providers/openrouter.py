"""OpenRouter provider implementation using openai SDK."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, cast

from openai import AsyncOpenAI

from astrawrite.ai.json_parser import parse_json_with_fallback
from astrawrite.ai.providers.base import AIModel, ModelConfigurationError, ModelResponse, Provider, SimpleModelResponse, StructuredModelResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


def _messages(prompt: str, system_instruction: str | None) -> list[dict[str, str]]:
  messages = [{"role": "system", "content": system_instruction}] if system_instruction else []
  messages.append({"role": "user", "content": prompt})
  return messages


class OpenRouterModel(AIModel):
  """OpenRouter model client over the OpenAI-compatible chat API."""

  def __init__(self, name: str, api_key: str, *, base_url: str | None = None, http_referer: str | None = None, title: str | None = None, client: AsyncOpenAI | None = None) -> None:
    if not api_key and client is None:
      raise ModelConfigurationError("An OpenRouter API key is required.")
    self.name: str = name
    self.supports_structured_output = True

    # OpenRouter uses the OpenAI-compatible API; we add optional attribution headers.
    default_headers = {}
    if http_referer:
      default_headers["HTTP-Referer"] = http_referer
    if title:
      default_headers["X-Title"] = title

    self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url or DEFAULT_BASE_URL, default_headers=default_headers or None)

  async def generate(self, prompt: str, *, system_instruction: str | None = None) -> ModelResponse:
    """Generate text response from OpenRouter."""
    response = await self._client.chat.completions.create(model=self.name, messages=_messages(prompt, system_instruction))

    content = response.choices[0].message.content or ""
    logger.debug("OpenRouter response (%s): %d characters", self.name, len(content))
    usage = None

    if response.usage:
      usage = {"prompt_tokens": response.usage.prompt_tokens, "completion_tokens": response.usage.completion_tokens, "total_tokens": response.usage.total_tokens}

    return SimpleModelResponse(content=content, usage=usage)

  async def stream(self, prompt: str, *, system_instruction: str | None = None, web_search: bool = False) -> AsyncIterator[str]:
    """Stream text fragments from OpenRouter."""
    # OpenRouter exposes web search as a model suffix.
    model = f"{self.name}:online" if web_search and not self.name.endswith(":online") else self.name
    response_stream = await self._client.chat.completions.create(model=model, messages=_messages(prompt, system_instruction), stream=True)
    async for chunk in response_stream:
      if not chunk.choices:
        continue
      delta = chunk.choices[0].delta.content
      if delta:
        yield delta

  async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> StructuredModelResponse:
    """Generate structured JSON output using a schema-bearing system message."""
    schema_str = json.dumps(schema, indent=2)
    system_msg = f"You are a helpful assistant that outputs valid JSON.\nYou MUST strictly output JSON adhering to this schema:\n```json\n{schema_str}\n```\nOutput valid JSON only, no markdown formatting."

    response = await self._client.chat.completions.create(model=self.name, messages=_messages(prompt, system_msg), response_format={"type": "json_object"})

    content = response.choices[0].message.content or "{}"
    logger.debug("OpenRouter structured response (raw):\n%s", content)

    try:
      parsed = cast(dict[str, Any], parse_json_with_fallback(self.strip_json_fences(content)))
    except json.JSONDecodeError as e:
      raise RuntimeError(f"OpenRouter returned invalid JSON: {e}") from e
    return StructuredModelResponse(content=parsed, usage=None)


class OpenRouterProvider(Provider):
  """OpenRouter provider; any model slug OpenRouter serves is accepted."""

  def __init__(self, api_key: str, *, base_url: str | None = None, http_referer: str | None = None, title: str | None = None) -> None:
    self.name: str = "openrouter"
    self._api_key = api_key
    self._base_url = base_url
    self._http_referer = http_referer
    self._title = title

  def get_model(self, model: str | None = None) -> AIModel:
    """Return an OpenRouter model client."""
    if not model:
      raise ModelConfigurationError("An OpenRouter model slug is required.")
    return OpenRouterModel(model, api_key=self._api_key, base_url=self._base_url, http_referer=self._http_referer, title=self._title)

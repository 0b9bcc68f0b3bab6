"""Gemini provider implementation using the google-genai SDK."""

from __future__ import annotations

import base64
import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Final, cast

from google import genai
from google.genai import types

from astrawrite.ai.backoff import retry_with_backoff
from astrawrite.ai.json_parser import parse_json_with_fallback
from astrawrite.ai.providers.base import AIModel, ModelConfigurationError, ModelResponse, Provider, SimpleModelResponse, StructuredModelResponse

logger = logging.getLogger(__name__)


def _usage_from(response: Any) -> dict[str, int] | None:
  if not response.usage_metadata:
    return None
  return {"prompt_tokens": response.usage_metadata.prompt_token_count, "completion_tokens": response.usage_metadata.candidates_token_count, "total_tokens": response.usage_metadata.total_token_count}


class GeminiModel(AIModel):
  """Gemini model client with streaming, structured output and image support."""

  def __init__(self, name: str, api_key: str, *, image_model: str = "gemini-2.5-flash-image", client: genai.Client | None = None) -> None:
    if not api_key and client is None:
      raise ModelConfigurationError("A Gemini API key is required.")
    self.name: str = name
    self.image_model = image_model
    self.supports_structured_output = True
    self.supports_images = True
    self._client = client or genai.Client(api_key=api_key)

  async def generate(self, prompt: str, *, system_instruction: str | None = None) -> ModelResponse:
    """Generate text response from Gemini."""
    config = types.GenerateContentConfig(system_instruction=system_instruction) if system_instruction else None
    response = await retry_with_backoff(self._client.aio.models.generate_content, model=self.name, contents=prompt, config=config)
    logger.debug("Gemini response (%s): %d characters", self.name, len(response.text or ""))
    return SimpleModelResponse(content=response.text or "", usage=_usage_from(response))

  async def stream(self, prompt: str, *, system_instruction: str | None = None, web_search: bool = False) -> AsyncIterator[str]:
    """Stream text fragments from Gemini in emission order."""
    tools = [types.Tool(google_search=types.GoogleSearch())] if web_search else None
    config = types.GenerateContentConfig(system_instruction=system_instruction, tools=tools)

    # Only the initial request is retried; a stream that fails midway surfaces the error.
    response_stream = await retry_with_backoff(self._client.aio.models.generate_content_stream, model=self.name, contents=prompt, config=config)
    async for chunk in response_stream:
      if chunk.text:
        yield chunk.text

  async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> StructuredModelResponse:
    """Generate structured JSON output using Gemini's JSON mode."""
    try:
      response = await retry_with_backoff(self._client.aio.models.generate_content, model=self.name, contents=prompt, config={"response_mime_type": "application/json", "response_schema": schema})
    except Exception as e:
      raise RuntimeError(f"Gemini structured generation failed: {e}") from e

    logger.debug("Gemini structured response (raw):\n%s", response.text)

    # Parse the model response with a lenient fallback to reduce retry churn.
    try:
      cleaned = self.strip_json_fences(response.text or "")
      parsed = cast(dict[str, Any], parse_json_with_fallback(cleaned))
      return StructuredModelResponse(content=parsed, usage=_usage_from(response))
    except json.JSONDecodeError as e:
      raise RuntimeError(f"Gemini returned invalid JSON: {e}") from e

  async def generate_image(self, prompt: str, *, aspect_ratio: str = "16:9") -> str:
    """Generate one image and return it as a base64 data URL."""
    config = types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"])
    response = await retry_with_backoff(self._client.aio.models.generate_content, model=self.image_model, contents=f"{prompt}\nAspect ratio: {aspect_ratio}.", config=config)

    for candidate in response.candidates or []:
      if candidate.content is None:
        continue
      for part in candidate.content.parts or []:
        if part.inline_data and part.inline_data.data:
          mime_type = part.inline_data.mime_type or "image/png"
          encoded = base64.b64encode(part.inline_data.data).decode("ascii")
          return f"data:{mime_type};base64,{encoded}"

    raise RuntimeError("Failed to generate image")


class GeminiProvider(Provider):
  """Gemini provider."""

  _DEFAULT_MODEL: Final[str] = "gemini-2.5-flash"
  _AVAILABLE_MODELS: Final[set[str]] = {"gemini-2.5-pro", "gemini-2.5-flash", "gemini-2.5-flash-lite", "gemini-2.0-flash", "gemini-3-pro-preview", "gemini-3-flash-preview"}

  def __init__(self, api_key: str, *, image_model: str = "gemini-2.5-flash-image") -> None:
    self.name: str = "gemini"
    self._api_key = api_key
    self._image_model = image_model

  def get_model(self, model: str | None = None) -> AIModel:
    """Return a Gemini model client."""
    model_name = model or self._DEFAULT_MODEL
    if model_name not in self._AVAILABLE_MODELS:
      raise ModelConfigurationError(f"Unsupported Gemini model '{model_name}'.")
    return GeminiModel(model_name, api_key=self._api_key, image_model=self._image_model)

"""Base interfaces for AI providers and models."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

_JSON_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class ModelResponse(Protocol):
  """Response contract for model outputs."""

  content: str
  usage: dict[str, int] | None


@dataclass
class SimpleModelResponse:
  """Minimal model response structure."""

  content: str
  usage: dict[str, int] | None = None


@dataclass
class StructuredModelResponse:
  """Structured model response structure."""

  content: dict[str, Any]
  usage: dict[str, int] | None = None


class ModelConfigurationError(RuntimeError):
  """Raised when no usable provider key or model is configured."""


class StructuredOutputError(ValueError):
  """Raised when a JSON tool reply does not have the requested shape."""


class AIModel(ABC):
  """Abstract base class for AI models."""

  name: str
  supports_structured_output: bool = False
  supports_images: bool = False

  @abstractmethod
  async def generate(self, prompt: str, *, system_instruction: str | None = None) -> ModelResponse:
    """Generate a response for the given prompt."""

  @abstractmethod
  def stream(self, prompt: str, *, system_instruction: str | None = None, web_search: bool = False) -> AsyncIterator[str]:
    """Yield response text fragments in emission order."""

  async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> StructuredModelResponse:
    """Generate structured output that conforms to the provided JSON schema."""
    raise RuntimeError("Structured output is not supported by this model.")

  async def generate_image(self, prompt: str, *, aspect_ratio: str = "16:9") -> str:
    """Generate an image and return it as a data URL."""
    raise RuntimeError(f"Image generation is not supported by model '{self.name}'.")

  @staticmethod
  def strip_json_fences(raw: str) -> str:
    """Remove markdown code fences wrapped around a JSON payload."""
    return _JSON_FENCE_RE.sub("", raw.strip())


class Provider(ABC):
  """Abstract base class for AI providers."""

  name: str

  @abstractmethod
  def get_model(self, model: str | None = None) -> AIModel:
    """Return the model client for the provider."""

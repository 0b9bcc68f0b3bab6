"""Provider implementations."""

from astrawrite.ai.providers.base import AIModel, ModelConfigurationError, ModelResponse, Provider, SimpleModelResponse, StructuredModelResponse, StructuredOutputError
from astrawrite.ai.providers.gemini import GeminiModel, GeminiProvider
from astrawrite.ai.providers.openrouter import OpenRouterModel, OpenRouterProvider

__all__ = ["AIModel", "ModelConfigurationError", "ModelResponse", "SimpleModelResponse", "StructuredModelResponse", "StructuredOutputError", "Provider", "GeminiModel", "GeminiProvider", "OpenRouterModel", "OpenRouterProvider"]

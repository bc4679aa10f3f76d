"""Provider implementations."""

from slidepress.ai.errors import UnsupportedProviderError
from slidepress.ai.providers.anthropic import AnthropicModel, AnthropicProvider
from slidepress.ai.providers.base import AIModel, ModelResponse, Provider, SimpleModelResponse
from slidepress.ai.providers.gemini import GeminiModel, GeminiProvider
from slidepress.ai.providers.openai import OpenAIModel, OpenAIProvider

_PROVIDERS: dict[str, type[Provider]] = {"openai": OpenAIProvider, "anthropic": AnthropicProvider, "gemini": GeminiProvider}

SUPPORTED_PROVIDERS: tuple[str, ...] = tuple(_PROVIDERS)


def get_provider(name: str) -> Provider:
  """Return a provider instance by name."""
  provider_cls = _PROVIDERS.get((name or "").strip().lower())
  if provider_cls is None:
    raise UnsupportedProviderError(name)
  return provider_cls()


__all__ = ["AIModel", "ModelResponse", "SimpleModelResponse", "Provider", "OpenAIModel", "OpenAIProvider", "AnthropicModel", "AnthropicProvider", "GeminiModel", "GeminiProvider", "SUPPORTED_PROVIDERS", "get_provider"]

"""Anthropic provider implementation using the anthropic SDK."""

from __future__ import annotations

import logging
from typing import Final

import anthropic
import httpx

from slidepress.ai.errors import GenerationError, ProviderAuthError
from slidepress.ai.providers.base import AIModel, ModelResponse, Provider, SimpleModelResponse, usage_dict

logger = logging.getLogger(__name__)


class AnthropicModel(AIModel):
  """Anthropic messages API client."""

  _MAX_TOKENS: Final[int] = 8000

  def __init__(self, name: str, *, api_key: str, http_client: httpx.AsyncClient | None = None) -> None:
    self.name: str = name
    self._client = anthropic.AsyncAnthropic(api_key=api_key, max_retries=0, http_client=http_client)

  async def generate(self, *, system_prompt: str, user_prompt: str) -> ModelResponse:
    """Generate slide markdown from Anthropic."""
    try:
      response = await self._client.messages.create(model=self.name, max_tokens=self._MAX_TOKENS, system=system_prompt, messages=[{"role": "user", "content": user_prompt}])
    except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as exc:
      raise ProviderAuthError("anthropic", exc.message) from exc
    except anthropic.AnthropicError as exc:
      raise GenerationError(f"Anthropic request failed: {exc}") from exc

    # Only text blocks carry slide content.
    content = "".join(getattr(block, "text", "") for block in response.content if getattr(block, "type", None) == "text")
    logger.info("Anthropic response received (%d chars)", len(content))
    usage = usage_dict(response.usage.input_tokens, response.usage.output_tokens) if response.usage else None
    return SimpleModelResponse(content=content, usage=usage)


class AnthropicProvider(Provider):
  """Anthropic provider."""

  name = "anthropic"

  def get_model(self, model: str, *, api_key: str, http_client: httpx.AsyncClient | None = None) -> AIModel:
    return AnthropicModel(model, api_key=api_key, http_client=http_client)

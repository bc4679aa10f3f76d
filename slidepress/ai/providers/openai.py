"""OpenAI provider implementation using the openai SDK."""

from __future__ import annotations

import logging

import httpx
import openai
from openai import AsyncOpenAI

from slidepress.ai.errors import GenerationError, ProviderAuthError
from slidepress.ai.providers.base import AIModel, ModelResponse, Provider, SimpleModelResponse, usage_dict

logger = logging.getLogger(__name__)


class OpenAIModel(AIModel):
  """OpenAI chat completions client."""

  def __init__(self, name: str, *, api_key: str, http_client: httpx.AsyncClient | None = None) -> None:
    self.name: str = name
    # A failed call fails the job; SDK-level retries are disabled.
    self._client = AsyncOpenAI(api_key=api_key, max_retries=0, http_client=http_client)

  async def generate(self, *, system_prompt: str, user_prompt: str) -> ModelResponse:
    """Generate slide markdown from OpenAI."""
    try:
      response = await self._client.chat.completions.create(model=self.name, messages=[{"role": "system", "content": system_prompt}, {"role": "user", "content": user_prompt}])
    except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
      raise ProviderAuthError("openai", exc.message) from exc
    except openai.OpenAIError as exc:
      raise GenerationError(f"OpenAI request failed: {exc}") from exc

    if not response.choices:
      raise GenerationError("OpenAI returned no choices.")
    content = response.choices[0].message.content or ""
    logger.info("OpenAI response received (%d chars)", len(content))
    usage = usage_dict(response.usage.prompt_tokens, response.usage.completion_tokens) if response.usage else None
    return SimpleModelResponse(content=content, usage=usage)


class OpenAIProvider(Provider):
  """OpenAI provider."""

  name = "openai"

  def get_model(self, model: str, *, api_key: str, http_client: httpx.AsyncClient | None = None) -> AIModel:
    return OpenAIModel(model, api_key=api_key, http_client=http_client)

"""Gemini provider implementation using the google-genai SDK."""

from __future__ import annotations

import logging

import httpx
from google import genai
from google.genai import errors, types

from slidepress.ai.errors import GenerationError, ProviderAuthError
from slidepress.ai.providers.base import AIModel, ModelResponse, Provider, SimpleModelResponse, usage_dict

logger = logging.getLogger(__name__)

_AUTH_STATUS_CODES = {401, 403}


class GeminiModel(AIModel):
  """Gemini model client."""

  def __init__(self, name: str, *, api_key: str) -> None:
    self.name: str = name
    self._client = genai.Client(api_key=api_key)

  async def generate(self, *, system_prompt: str, user_prompt: str) -> ModelResponse:
    """Generate slide markdown from Gemini."""
    try:
      # Use the async client to avoid blocking the asyncio event loop.
      response = await self._client.aio.models.generate_content(model=self.name, contents=user_prompt, config=types.GenerateContentConfig(system_instruction=system_prompt))
    except errors.APIError as exc:
      # Gemini reports a bad key as 400 API_KEY_INVALID as well as 401/403.
      if exc.code in _AUTH_STATUS_CODES or "API_KEY_INVALID" in str(exc):
        raise ProviderAuthError("gemini", exc.message or str(exc)) from exc
      raise GenerationError(f"Gemini request failed: {exc}") from exc

    content = response.text or ""
    logger.info("Gemini response received (%d chars)", len(content))
    usage = None
    if response.usage_metadata:
      usage = usage_dict(response.usage_metadata.prompt_token_count, response.usage_metadata.candidates_token_count)
    return SimpleModelResponse(content=content, usage=usage)


class GeminiProvider(Provider):
  """Gemini provider."""

  name = "gemini"

  def get_model(self, model: str, *, api_key: str, http_client: httpx.AsyncClient | None = None) -> AIModel:
    # google-genai manages its own transport.
    return GeminiModel(model, api_key=api_key)

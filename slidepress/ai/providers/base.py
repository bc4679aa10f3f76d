"""Base interfaces for AI providers and models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol

import httpx


class ModelResponse(Protocol):
  """Response contract for model outputs."""

  content: str
  usage: dict[str, int] | None


@dataclass
class SimpleModelResponse:
  """Minimal model response structure."""

  content: str
  usage: dict[str, int] | None = None


class AIModel(ABC):
  """Abstract base class for AI models."""

  name: str

  @abstractmethod
  async def generate(self, *, system_prompt: str, user_prompt: str) -> ModelResponse:
    """Generate a response for the given prompts."""


class Provider(ABC):
  """Abstract base class for AI providers."""

  name: str

  @abstractmethod
  def get_model(self, model: str, *, api_key: str, http_client: httpx.AsyncClient | None = None) -> AIModel:
    """Return the model client for the provider."""


def usage_dict(prompt_tokens: Any, completion_tokens: Any) -> dict[str, int] | None:
  """Normalize token counts into the shared usage shape."""
  if prompt_tokens is None and completion_tokens is None:
    return None
  prompt = int(prompt_tokens or 0)
  completion = int(completion_tokens or 0)
  return {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": prompt + completion}

"""Slide content generation: one live provider call or a deterministic sample."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from slidepress.ai.errors import GenerationError
from slidepress.ai.prompts import SLIDE_SEPARATOR, PromptConfig, build_user_prompt, get_custom_system_prompt, split_slides
from slidepress.ai.providers import get_provider
from slidepress.utils.ids import slugify

logger = logging.getLogger(__name__)

SAMPLE_PROVIDER = "sample"
SAMPLE_MODEL = "sample-generator"

_FENCE_OPEN = re.compile(r"^\s*```[A-Za-z]*[ \t]*\n")
_FENCE_CLOSE = re.compile(r"\n```\s*$")
_EDGE_SEPARATOR = re.compile(r"^(?:\s*---\s*\n)+|(?:\n\s*---\s*)+$")


@dataclass
class SlideDeck:
  """Generated slide markdown plus metadata."""

  markdown: str
  filename: str
  metadata: dict[str, Any] = field(default_factory=dict)

  @property
  def slide_count(self) -> int:
    return int(self.metadata.get("slide_count", 0))


def count_slides(markdown: str) -> int:
  return len(split_slides(markdown))


def normalize_markdown(raw: str) -> str:
  """Strip wrapping code fences and leading or trailing separators from model output."""
  text = raw.replace("\r\n", "\n").strip()
  text = _FENCE_OPEN.sub("", text, count=1)
  text = _FENCE_CLOSE.sub("", text, count=1)
  text = _EDGE_SEPARATOR.sub("", text.strip())
  return text.strip()


def _deck_filename(topic: str) -> str:
  return f"{slugify(topic)}.md"


def _build_deck(markdown: str, *, topic: str, provider: str, model: str) -> SlideDeck:
  metadata = {"slide_count": count_slides(markdown), "character_count": len(markdown), "provider": provider, "model": model}
  return SlideDeck(markdown=markdown, filename=_deck_filename(topic), metadata=metadata)


class SlideGenerator:
  """Produce slide markdown from a provider or from the local sample generator."""

  def __init__(self, *, timeout_seconds: float | None = None, http_client: httpx.AsyncClient | None = None) -> None:
    self._timeout_seconds = timeout_seconds
    self._http_client = http_client

  async def generate(self, config: PromptConfig) -> SlideDeck:
    """Make exactly one provider call and normalize the result."""
    provider = get_provider(config.provider)
    model = provider.get_model(config.model, api_key=config.api_key, http_client=self._http_client)
    system_prompt = get_custom_system_prompt(config.custom_system_prompt)
    user_prompt = build_user_prompt(topic=config.topic, audience=config.audience, slide_count=config.slide_count, tone=config.tone, include_code=config.include_code, topic_type=config.topic_type)

    logger.info("Requesting %d slides from %s/%s", config.slide_count, provider.name, config.model)
    try:
      response = await asyncio.wait_for(model.generate(system_prompt=system_prompt, user_prompt=user_prompt), timeout=self._timeout_seconds)
    except asyncio.TimeoutError as exc:
      raise GenerationError(f"{provider.name} did not respond within {self._timeout_seconds:g} seconds.") from exc

    markdown = normalize_markdown(response.content or "")
    if not markdown:
      raise GenerationError(f"{provider.name} returned an empty response.")
    if count_slides(markdown) == 0:
      raise GenerationError(f"{provider.name} returned no slides.")

    deck = _build_deck(markdown, topic=config.topic, provider=provider.name, model=config.model)
    if response.usage:
      deck.metadata["usage"] = dict(response.usage)
    logger.info("Generated %d slides (%d chars)", deck.slide_count, len(markdown))
    return deck

  async def generate_sample(self, topic: str, slide_count: int) -> SlideDeck:
    """Return deterministic placeholder slides without any network call."""
    return generate_sample_deck(topic, slide_count)


def generate_sample_deck(topic: str, slide_count: int) -> SlideDeck:
  """Build exactly ``slide_count`` sample slides, each with speaker notes."""
  if slide_count < 1:
    raise GenerationError("Slide count must be at least 1.")

  # Title, agenda and closing slides frame the content slides.
  content_count = slide_count - 3 if slide_count >= 3 else 0
  sections = [f"Key idea {index}" for index in range(1, content_count + 1)]

  slides = [f'<!-- .slide: data-background-gradient="linear-gradient(to bottom, #283b95, #17b2c3)" -->\n# {topic}\n## A sample presentation\n\nNote:\nOpen with a question about {topic}.\n[Timing: 1 minute]']

  if slide_count >= 3:
    agenda = "\n".join(f"- {section} <!-- .element: class=\"fragment\" -->" for section in sections[:4]) or "- Overview"
    slides.append(f"# Agenda\n\n{agenda}\n\nNote:\nPreview what the audience will learn about {topic}.\n[Timing: 1 minute]")

  for index, section in enumerate(sections, start=1):
    slides.append(f"# {section}\n\n- Point one about {topic}\n- Point two with an example\n\nNote:\nTell a short story that illustrates part {index}.\n[Timing: 2 minutes]")

  if slide_count >= 2:
    slides.append(f"# Thank You\n\n- Recap the key ideas\n- Explore {topic} further\n\nNote:\nClose with a call to action.\n[Timing: 1 minute]")

  markdown = SLIDE_SEPARATOR.join(slides)
  return _build_deck(markdown, topic=topic, provider=SAMPLE_PROVIDER, model=SAMPLE_MODEL)

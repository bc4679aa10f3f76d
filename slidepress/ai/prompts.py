"""Prompt builders for slide generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

Tone = Literal["professional", "casual", "academic", "inspiring", "humorous"]
TopicType = Literal["general", "technical", "business", "educational", "creative"]

SLIDE_SEPARATOR: Final[str] = "\n---\n"

SYSTEM_PROMPT: Final[str] = """You are a presentation designer who writes reveal.js slide decks in Markdown.

## Goals
- Every slide carries one clear idea.
- Keep at most 4 bullet points on a slide.
- Prefer visuals, short phrases and concrete examples over paragraphs.
- Speaker notes tell the story the slide only hints at.

## Format
Separate slides with a line containing only `---`. Every slide ends with a
speaker notes block that starts with `Note:`.

```markdown
# Slide Title
## Optional subtitle

- First point <!-- .element: class="fragment" -->
- Second point <!-- .element: class="fragment" -->

Note:
Opening story or statistic for the speaker.
[Timing: ~2 minutes]
```

Useful reveal.js features:
- `<!-- .slide: data-auto-animate -->` for slides that show a progression.
- `<!-- .slide: data-background-color="#1e3a8a" -->` or
  `data-background-gradient` for visual variety.
- Fragment classes: fragment, fade-in, fade-out, grow, shrink, highlight-blue.
- Fenced code blocks with a language and optional line highlights, e.g. ```python [1-3]

## Structure
1. Title slide with a subtitle and no bullets. Notes open with a hook.
2. Agenda slide listing 3-4 sections.
3. Content slides, one idea each, with examples.
4. Conclusion slide with at most 3 takeaways and a call to action.

Return only the slide Markdown."""

_CUSTOM_PROMPT_REQUIREMENTS: Final[str] = """

## Output requirements
- Use reveal.js Markdown with `---` separators between slides.
- Give every slide speaker notes using `Note:`.
- Keep at most 4 bullet points per slide.
- One main idea per slide.
"""

TONE_GUIDES: Final[dict[str, str]] = {
  "professional": "- Authoritative and approachable\n- Business vocabulary and data-driven examples\n- Clean design in blues and greys",
  "casual": "- Conversational language\n- Relatable everyday examples, light humour\n- Warm colours with bright accents",
  "academic": "- Scholarly language\n- Research-backed claims with citations where relevant\n- Traditional design in navy, maroon and cream",
  "inspiring": "- Motivational language\n- Aspirational stories and quotes\n- Bold, high-contrast colours",
  "humorous": "- Witty observations\n- Playful examples\n- Unexpected, fun colour combinations",
}

TOPIC_GUIDES: Final[dict[str, str]] = {
  "general": "- Balanced approach\n- Universal examples that need no background\n- Neutral colour scheme",
  "technical": "- Code examples with syntax highlighting\n- Diagrams for architecture and processes\n- Before/after comparisons with auto-animate",
  "business": "- Focus on ROI and metrics\n- Case studies and success stories\n- Executive summary style",
  "educational": "- State learning objectives up front\n- Scaffold the material with examples and non-examples\n- Add check-for-understanding prompts to the notes",
  "creative": "- Visual-first layouts\n- Storytelling and emotional connection\n- Artistic colour palettes",
}


@dataclass(frozen=True)
class PromptConfig:
  """Inputs for one live generation call."""

  topic: str
  provider: str
  model: str
  api_key: str
  audience: str = "general audience"
  slide_count: int = 8
  tone: str = "professional"
  topic_type: str = "general"
  include_code: bool = False
  custom_system_prompt: str | None = None


def get_tone_guide(tone: str) -> str:
  return TONE_GUIDES.get(tone, TONE_GUIDES["professional"])


def get_topic_guide(topic_type: str) -> str:
  return TOPIC_GUIDES.get(topic_type, TOPIC_GUIDES["general"])


def get_custom_system_prompt(custom_prompt: str | None) -> str:
  """Return the system prompt, appending format requirements to a caller override."""
  if not custom_prompt or not custom_prompt.strip():
    return SYSTEM_PROMPT
  return custom_prompt.strip() + _CUSTOM_PROMPT_REQUIREMENTS


def build_user_prompt(*, topic: str, audience: str = "general audience", slide_count: int = 8, tone: str = "professional", include_code: bool = False, topic_type: str = "general") -> str:
  """Render the per-request user prompt."""
  lines = [f'Create a {slide_count}-slide presentation about: "{topic}"', "", f"**Target audience:** {audience}", f"**Tone:** {tone}", f"**Presentation type:** {topic_type}"]
  if include_code:
    lines.append("**Include:** code examples with syntax highlighting")

  lines.extend(["", "## Structure", f"- Exactly {slide_count} slides."])
  if slide_count >= 3:
    lines.extend(["- Slide 1: title slide with a compelling subtitle.", "- Slide 2: agenda.", f"- Slides 3-{slide_count - 1}: main content, one idea per slide." if slide_count > 3 else "- Slide 3: conclusion with a call to action."])
  if slide_count > 3:
    lines.append(f"- Slide {slide_count}: conclusion with a call to action.")

  lines.extend(["", "## Tone guidelines", get_tone_guide(tone), "", "## Topic guidance", get_topic_guide(topic_type), "", "Return ONLY the slide Markdown, with slides separated by `---` lines."])
  return "\n".join(lines)


def split_slides(markdown: str) -> list[str]:
  """Split deck markdown on ``SLIDE_SEPARATOR`` and drop blank slides."""
  normalized = markdown.replace("\r\n", "\n")
  return [slide for slide in normalized.split(SLIDE_SEPARATOR) if slide.strip()]

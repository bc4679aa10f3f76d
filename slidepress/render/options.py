"""Closed option sets for reveal.js presentations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Literal, get_args

Theme = Literal["black", "white", "league", "beige", "sky", "night", "serif", "simple", "solarized", "blood", "moon"]
Transition = Literal["none", "fade", "slide", "convex", "concave", "zoom"]
HighlightTheme = Literal["monokai", "zenburn", "vs", "github", "github-dark", "atom-one-dark", "atom-one-light", "dracula"]

THEMES: Final[tuple[str, ...]] = get_args(Theme)
TRANSITIONS: Final[tuple[str, ...]] = get_args(Transition)
HIGHLIGHT_THEMES: Final[tuple[str, ...]] = get_args(HighlightTheme)

THEME_DESCRIPTIONS: Final[dict[str, str]] = {
  "black": "Black background, white text. Classic and professional.",
  "white": "White background, black text. Clean and minimal.",
  "league": "Gray background, white text. Modern and sleek.",
  "beige": "Beige background, dark text. Warm and inviting.",
  "sky": "Blue gradient background. Fresh and energetic.",
  "night": "Dark background, thick white text. Bold and dramatic.",
  "serif": "Cappuccino background, gray text. Traditional and elegant.",
  "simple": "White background, black text. Minimalist design.",
  "solarized": "Cream-colored background. Easy on the eyes.",
  "blood": "Dark background, red accents. Striking and memorable.",
  "moon": "Dark blue background. Professional night theme.",
}


class InvalidRenderOptionError(ValueError):
  """Raised when a render option falls outside its allowed set."""


@dataclass(frozen=True)
class RenderOptions:
  """Presentation settings passed through to Reveal.initialize."""

  theme: str = "black"
  transition: str = "slide"
  highlight_theme: str = "monokai"
  controls: bool = True
  progress: bool = True
  slide_number: bool = False
  hash: bool = True
  center: bool = True
  title: str | None = None

  def __post_init__(self) -> None:
    _check_choice("theme", self.theme, THEMES)
    _check_choice("transition", self.transition, TRANSITIONS)
    _check_choice("highlight theme", self.highlight_theme, HIGHLIGHT_THEMES)


def _check_choice(label: str, value: str, allowed: tuple[str, ...]) -> None:
  if value not in allowed:
    raise InvalidRenderOptionError(f"Invalid {label}: {value}. Must be one of: {', '.join(allowed)}")


def theme_catalog() -> dict[str, Any]:
  """Return the themes, highlight themes and transitions offered to clients."""
  themes = [{"id": theme, "name": theme.capitalize(), "description": THEME_DESCRIPTIONS.get(theme, "Professional presentation theme")} for theme in THEMES]
  return {"themes": themes, "highlightThemes": list(HIGHLIGHT_THEMES), "transitions": list(TRANSITIONS)}

"""Render slide markdown into a self-contained reveal.js page.

The page is an on-disk template filled with escaped placeholders. Markdown is
not parsed here: every slide is handed to the reveal.js markdown plugin in the
browser inside a ``<textarea data-template>``.
"""

from __future__ import annotations

import html
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from slidepress.ai.prompts import split_slides
from slidepress.render.options import RenderOptions

logger = logging.getLogger(__name__)

REVEAL_VERSION = "5.0.4"
DEFAULT_TITLE = "Presentation"

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")
_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
_HEADING_RE = re.compile(r"^#\s+(.+?)\s*$", re.MULTILINE)


class RenderError(ValueError):
  """Raised when markdown cannot be turned into a presentation."""


def render_slide(slide: str) -> str:
  return f"<section data-markdown>\n<textarea data-template>\n{html.escape(slide, quote=False)}\n</textarea>\n</section>"


def render(markdown: str, options: RenderOptions | None = None) -> str:
  """Return the complete HTML document for ``markdown``."""
  options = options or RenderOptions()
  if not markdown or not markdown.strip():
    raise RenderError("Cannot render an empty presentation.")

  slides = split_slides(markdown)
  if not slides:
    raise RenderError("Markdown contains no slides.")

  placeholders: dict[str, Any] = {
    "title": options.title or _infer_title(slides[0]),
    "reveal_version": REVEAL_VERSION,
    "theme": options.theme,
    "highlight_theme": options.highlight_theme,
    "transition": options.transition,
    "controls": _js_bool(options.controls),
    "progress": _js_bool(options.progress),
    "hash": _js_bool(options.hash),
    "center": _js_bool(options.center),
  }
  # Slides are escaped one by one and slide_number is a JS literal, so both bypass placeholder escaping.
  raw_values = {"slides": "\n".join(render_slide(slide) for slide in slides), "slide_number": "'c/t'" if options.slide_number else "false"}

  document = _render_text(_load_template("presentation.html"), placeholders=placeholders, raw_values=raw_values)
  logger.debug("Rendered %d slides with theme %s", len(slides), options.theme)
  return document


def build_static_presentation(markdown: str, output_dir: Path, options: RenderOptions | None = None) -> dict[str, Any]:
  """Write ``index.html`` for ``markdown`` into ``output_dir``."""
  options = options or RenderOptions()
  document = render(markdown, options)
  output_dir.mkdir(parents=True, exist_ok=True)
  index_path = output_dir / "index.html"
  index_path.write_text(document, encoding="utf-8")
  logger.info("Wrote static presentation to %s", index_path)
  return {"success": True, "outputDir": str(output_dir), "indexPath": str(index_path), "theme": options.theme}


def _infer_title(first_slide: str) -> str:
  match = _HEADING_RE.search(first_slide)
  if match is None:
    return DEFAULT_TITLE
  return match.group(1)


def _js_bool(value: bool) -> str:
  return "true" if value else "false"


def _render_text(template: str, *, placeholders: dict[str, Any], raw_values: dict[str, str]) -> str:
  def _replace(match: re.Match[str]) -> str:
    key = match.group(1)
    if key in raw_values:
      return raw_values[key]
    if key not in placeholders:
      raise RenderError(f"Template placeholder '{key}' has no value.")
    return html.escape(str(placeholders[key]), quote=True)

  return _PLACEHOLDER_RE.sub(_replace, template)


@lru_cache(maxsize=4)
def _load_template(filename: str) -> str:
  path = _TEMPLATE_DIR / filename
  return path.read_text(encoding="utf-8")

"""Tests for the reveal.js page renderer."""

from __future__ import annotations

from pathlib import Path

import pytest

from slidepress.render.options import InvalidRenderOptionError, RenderOptions, theme_catalog
from slidepress.render.reveal import REVEAL_VERSION, RenderError, build_static_presentation, render, render_slide, split_slides

DECK = "# Coffee\n## A history\n\nNote:\nHook.\n---\n# Agenda\n\n- Origins\n\nNote:\nPreview."


def test_split_slides_drops_blank_chunks() -> None:
  assert split_slides("# One\n---\n\n---\n# Two\r\n---\n") == ["# One", "# Two"]


def test_render_emits_one_section_per_slide() -> None:
  document = render(DECK)
  assert document.startswith("<!DOCTYPE html>")
  assert document.count("<section data-markdown>") == 2
  assert document.count("<textarea data-template>") == 2
  assert f"reveal.js@{REVEAL_VERSION}/dist/theme/black.css" in document
  assert "<title>Coffee</title>" in document
  assert "{{" not in document


def test_render_escapes_markup_inside_slides() -> None:
  document = render("# Tags\n\n</textarea><script>alert(1)</script>")
  assert "<script>alert(1)</script>" not in document
  assert "&lt;/textarea&gt;&lt;script&gt;alert(1)&lt;/script&gt;" in document


def test_render_slide_keeps_quotes_for_markdown_plugin() -> None:
  rendered = render_slide('<!-- .slide: data-background-color="#1e3a8a" -->\n# Blue')
  assert 'data-background-color="#1e3a8a"' in rendered


def test_render_applies_options() -> None:
  options = RenderOptions(theme="moon", transition="zoom", highlight_theme="dracula", controls=False, slide_number=True, title="Deck <1>")
  document = render(DECK, options)
  assert "dist/theme/moon.css" in document
  assert "plugin/highlight/dracula.css" in document
  assert "transition: 'zoom'" in document
  assert "controls: false" in document
  assert "slideNumber: 'c/t'" in document
  assert "<title>Deck &lt;1&gt;</title>" in document


def test_render_defaults_slide_number_off_and_title_fallback() -> None:
  document = render("- just bullets")
  assert "slideNumber: false" in document
  assert "<title>Presentation</title>" in document


@pytest.mark.parametrize("markdown", ["", "   \n", "\n---\n"])
def test_render_rejects_empty_markdown(markdown: str) -> None:
  with pytest.raises(RenderError):
    render(markdown)


def test_build_static_presentation_writes_index(tmp_path: Path) -> None:
  result = build_static_presentation(DECK, tmp_path / "job-1", RenderOptions(theme="sky"))
  index_path = tmp_path / "job-1" / "index.html"
  assert result == {"success": True, "outputDir": str(tmp_path / "job-1"), "indexPath": str(index_path), "theme": "sky"}
  assert "dist/theme/sky.css" in index_path.read_text(encoding="utf-8")


def test_render_options_reject_values_outside_allowed_sets() -> None:
  with pytest.raises(InvalidRenderOptionError, match="Invalid theme"):
    RenderOptions(theme="neon")
  with pytest.raises(InvalidRenderOptionError, match="Invalid transition"):
    RenderOptions(transition="spin")


def test_theme_catalog_lists_every_option() -> None:
  catalog = theme_catalog()
  ids = [theme["id"] for theme in catalog["themes"]]
  assert ids[0] == "black"
  assert "moon" in ids
  assert all(theme["description"] for theme in catalog["themes"])
  assert "monokai" in catalog["highlightThemes"]
  assert "fade" in catalog["transitions"]

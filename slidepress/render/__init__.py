"""Markdown to reveal.js rendering."""

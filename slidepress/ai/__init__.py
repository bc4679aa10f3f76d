"""Slide content generation."""

"""Identifier utilities."""

from __future__ import annotations

import re
import secrets
import time

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")


def generate_job_id() -> str:
  """Return a new job identifier.

  A millisecond clock prefix keeps ids roughly sortable by creation time and the
  random suffix separates jobs submitted within the same millisecond.
  """
  return f"{time.time_ns() // 1_000_000:x}{secrets.token_hex(8)}"


def slugify(text: str, *, max_length: int = 60) -> str:
  """Return a filesystem and URL friendly slug for a topic."""
  slug = _SLUG_STRIP_RE.sub("-", text.lower()).strip("-")
  slug = slug[:max_length].rstrip("-")
  return slug or "presentation"

"""Minimal dotenv support so local runs pick up provider keys and SLIDEPRESS_* settings."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from pathlib import Path

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_QUOTES = ('"', "'")


def default_env_path() -> Path:
  """Honour SLIDEPRESS_ENV_FILE, otherwise use .env next to the package."""
  override = os.getenv("SLIDEPRESS_ENV_FILE")
  if override:
    return Path(override).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def _parse_value(raw: str) -> str:
  value = raw.strip()
  if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
    return value[1:-1]
  # Unquoted values may carry a trailing " # comment".
  match = re.search(r"\s#", value)
  return value[: match.start()].rstrip() if match else value


def parse_env_lines(lines: Iterable[str]) -> dict[str, str]:
  """Parse dotenv lines into a mapping, skipping comments and malformed keys."""
  parsed: dict[str, str] = {}
  for raw_line in lines:
    line = raw_line.strip()
    if not line or line.startswith("#"):
      continue
    line = line.removeprefix("export ").lstrip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not _ENV_KEY_RE.match(key):
      continue
    parsed[key] = _parse_value(value)
  return parsed


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Export the file's variables and return the keys that were applied.

  Variables already present in the environment win unless ``override`` is set.
  """
  if not path.is_file():
    return []

  applied: list[str] = []
  for key, value in parse_env_lines(path.read_text(encoding="utf-8").splitlines()).items():
    if not override and key in os.environ:
      continue
    os.environ[key] = value
    applied.append(key)
  return applied

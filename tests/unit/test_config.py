from __future__ import annotations

from collections.abc import Iterator

import pytest

from slidepress.config import get_settings


@pytest.fixture
def fresh_settings() -> Iterator[None]:
  """Re-read the environment for each test and restore the cached settings afterwards."""
  get_settings.cache_clear()
  yield
  get_settings.cache_clear()


def test_defaults(fresh_settings: None, monkeypatch: pytest.MonkeyPatch) -> None:
  for key in ("SLIDEPRESS_JOBS_TTL_SECONDS", "SLIDEPRESS_DEFAULT_SLIDE_COUNT", "SLIDEPRESS_GITHUB_API_URL"):
    monkeypatch.delenv(key, raising=False)
  settings = get_settings()
  assert settings.jobs_backend == "memory"
  assert settings.jobs_ttl_seconds == 86400
  assert settings.default_slide_count == 8
  assert settings.github_api_url == "https://api.github.com"
  assert settings.provider_api_key("openai") is None


def test_zero_disables_ttl_and_generation_timeout(fresh_settings: None, monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("SLIDEPRESS_JOBS_TTL_SECONDS", "0")
  monkeypatch.setenv("SLIDEPRESS_GENERATION_TIMEOUT_SECONDS", "0")
  settings = get_settings()
  assert settings.jobs_ttl_seconds is None
  assert settings.generation_timeout_seconds is None


def test_provider_keys_and_flags(fresh_settings: None, monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("ANTHROPIC_API_KEY", "  sk-ant  ")
  monkeypatch.setenv("SLIDEPRESS_JOBS_AUTO_PROCESS", "off")
  monkeypatch.setenv("SLIDEPRESS_ALLOWED_ORIGINS", "http://a.test, http://b.test")
  monkeypatch.setenv("SLIDEPRESS_GITHUB_API_URL", "https://github.example.com/api/v3/")
  settings = get_settings()
  assert settings.provider_api_key("anthropic") == "sk-ant"
  assert settings.jobs_auto_process is False
  assert settings.allowed_origins == ("http://a.test", "http://b.test")
  assert settings.github_api_url == "https://github.example.com/api/v3"


@pytest.mark.parametrize(
  ("key", "value"),
  [
    ("SLIDEPRESS_JOBS_BACKEND", "redis"),
    ("SLIDEPRESS_ALLOWED_ORIGINS", "*"),
    ("SLIDEPRESS_JOBS_TTL_SECONDS", "-1"),
    ("SLIDEPRESS_DEFAULT_SLIDE_COUNT", "0"),
    ("SLIDEPRESS_GENERATION_TIMEOUT_SECONDS", "-5"),
  ],
)
def test_invalid_values_are_rejected(fresh_settings: None, monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
  monkeypatch.setenv(key, value)
  with pytest.raises(ValueError):
    get_settings()

"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from slidepress.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_JOB_BACKENDS = {"memory", "dynamodb"}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the SlidePress service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  base_url: str | None
  log_dir: Path
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  jobs_backend: str
  jobs_ttl_seconds: int | None
  jobs_auto_process: bool
  dynamodb_table: str
  dynamodb_region: str
  dynamodb_endpoint_url: str | None
  generation_timeout_seconds: float | None
  default_slide_count: int
  max_topic_length: int
  static_build_dir: Path | None
  github_api_url: str
  github_timeout_seconds: float
  github_sha_retries: int
  github_repo_ready_delay: float
  openai_api_key: str | None
  anthropic_api_key: str | None
  gemini_api_key: str | None

  def provider_api_key(self, provider: str) -> str | None:
    """Return the server-side API key configured for a provider, if any."""
    keys = {"openai": self.openai_api_key, "anthropic": self.anthropic_api_key, "gemini": self.gemini_api_key}
    return keys.get(provider)


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("http://localhost:8888",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("SLIDEPRESS_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("SLIDEPRESS_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _parse_optional_seconds(raw: str | None, *, name: str, default: str) -> float | None:
  """Parse a timeout where zero disables the bound."""
  value = float(raw if raw is not None and raw.strip() != "" else default)
  if value < 0:
    raise ValueError(f"{name} must be zero or a positive number.")
  if value == 0:
    return None
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("SLIDEPRESS_ENV", "development").lower()
  debug = _parse_bool(os.getenv("SLIDEPRESS_DEBUG"))

  log_dir = Path(os.getenv("SLIDEPRESS_LOG_DIR") or Path(__file__).resolve().parent.parent / "logs")

  log_max_bytes = int(os.getenv("SLIDEPRESS_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("SLIDEPRESS_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("SLIDEPRESS_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("SLIDEPRESS_LOG_BACKUP_COUNT must be zero or a positive integer.")

  jobs_backend = (os.getenv("SLIDEPRESS_JOBS_BACKEND") or "memory").strip().lower()
  if jobs_backend not in _JOB_BACKENDS:
    raise ValueError(f"SLIDEPRESS_JOBS_BACKEND must be one of: {', '.join(sorted(_JOB_BACKENDS))}.")

  # Zero keeps records until the process exits (memory) or forever (dynamodb).
  jobs_ttl_seconds: int | None = int(os.getenv("SLIDEPRESS_JOBS_TTL_SECONDS", "86400"))
  if jobs_ttl_seconds < 0:
    raise ValueError("SLIDEPRESS_JOBS_TTL_SECONDS must be zero or a positive integer.")
  if jobs_ttl_seconds == 0:
    jobs_ttl_seconds = None

  default_slide_count = int(os.getenv("SLIDEPRESS_DEFAULT_SLIDE_COUNT", "8"))
  if not 1 <= default_slide_count <= 50:
    raise ValueError("SLIDEPRESS_DEFAULT_SLIDE_COUNT must be between 1 and 50.")

  max_topic_length = int(os.getenv("SLIDEPRESS_MAX_TOPIC_LENGTH", "300"))
  if max_topic_length <= 0:
    raise ValueError("SLIDEPRESS_MAX_TOPIC_LENGTH must be a positive integer.")

  github_timeout_seconds = float(os.getenv("SLIDEPRESS_GITHUB_TIMEOUT_SECONDS", "30"))
  if github_timeout_seconds <= 0:
    raise ValueError("SLIDEPRESS_GITHUB_TIMEOUT_SECONDS must be positive.")

  github_sha_retries = int(os.getenv("SLIDEPRESS_GITHUB_SHA_RETRIES", "2"))
  if github_sha_retries < 0:
    raise ValueError("SLIDEPRESS_GITHUB_SHA_RETRIES must be zero or a positive integer.")

  static_build_dir = _optional_str(os.getenv("SLIDEPRESS_STATIC_BUILD_DIR"))

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("SLIDEPRESS_ALLOWED_ORIGINS")),
    base_url=_optional_str(os.getenv("SLIDEPRESS_BASE_URL")),
    log_dir=log_dir,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("SLIDEPRESS_LOG_HTTP_4XX")),
    jobs_backend=jobs_backend,
    jobs_ttl_seconds=jobs_ttl_seconds,
    jobs_auto_process=_parse_bool(os.getenv("SLIDEPRESS_JOBS_AUTO_PROCESS"), default=True),
    dynamodb_table=os.getenv("SLIDEPRESS_DYNAMODB_TABLE", "slidepress-jobs"),
    dynamodb_region=os.getenv("SLIDEPRESS_DYNAMODB_REGION", "us-east-1"),
    dynamodb_endpoint_url=_optional_str(os.getenv("SLIDEPRESS_DYNAMODB_ENDPOINT_URL")),
    generation_timeout_seconds=_parse_optional_seconds(os.getenv("SLIDEPRESS_GENERATION_TIMEOUT_SECONDS"), name="SLIDEPRESS_GENERATION_TIMEOUT_SECONDS", default="300"),
    default_slide_count=default_slide_count,
    max_topic_length=max_topic_length,
    static_build_dir=Path(static_build_dir) if static_build_dir else None,
    github_api_url=(os.getenv("SLIDEPRESS_GITHUB_API_URL") or "https://api.github.com").strip().rstrip("/"),
    github_timeout_seconds=github_timeout_seconds,
    github_sha_retries=github_sha_retries,
    github_repo_ready_delay=float(os.getenv("SLIDEPRESS_GITHUB_REPO_READY_DELAY", "2")),
    openai_api_key=_optional_str(os.getenv("OPENAI_API_KEY")),
    anthropic_api_key=_optional_str(os.getenv("ANTHROPIC_API_KEY")),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
  )

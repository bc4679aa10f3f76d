"""Test configuration for the SlidePress package."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from dataclasses import replace

# Settings are read once per process, so the environment must be fixed before importing the app.
os.environ["SLIDEPRESS_LOG_DIR"] = tempfile.mkdtemp(prefix="slidepress-logs-")
os.environ["SLIDEPRESS_JOBS_BACKEND"] = "memory"
os.environ["SLIDEPRESS_JOBS_AUTO_PROCESS"] = "1"
os.environ["SLIDEPRESS_GITHUB_REPO_READY_DELAY"] = "0"
os.environ["SLIDEPRESS_GENERATION_TIMEOUT_SECONDS"] = "30"
os.environ["SLIDEPRESS_ALLOWED_ORIGINS"] = "http://localhost"
for _key in ("SLIDEPRESS_BASE_URL", "SLIDEPRESS_STATIC_BUILD_DIR", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY"):
  os.environ.pop(_key, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from slidepress.api.deps import get_repo  # noqa: E402
from slidepress.config import Settings, get_settings  # noqa: E402
from slidepress.main import app  # noqa: E402
from slidepress.storage.factory import reset_jobs_repos  # noqa: E402
from slidepress.storage.memory_jobs_repo import InMemoryJobsRepository  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def settings() -> Settings:
  return get_settings()


@pytest.fixture
def make_settings(settings: Settings):
  """Return a factory for settings with selected fields overridden."""

  def _make(**overrides: object) -> Settings:
    return replace(settings, **overrides)

  return _make


@pytest.fixture
def jobs_repo() -> InMemoryJobsRepository:
  return InMemoryJobsRepository()


@pytest.fixture
def client(jobs_repo: InMemoryJobsRepository) -> Iterator[TestClient]:
  """HTTP client bound to an isolated in-memory job store.

  The lifespan is not entered so test logging stays with pytest.
  """
  app.dependency_overrides[get_repo] = lambda: jobs_repo
  yield TestClient(app)
  app.dependency_overrides.clear()
  reset_jobs_repos()

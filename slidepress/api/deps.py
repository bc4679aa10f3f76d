"""Shared FastAPI dependencies, overridable in tests."""

from __future__ import annotations

import httpx
from fastapi import Depends

from slidepress.ai.generator import SlideGenerator
from slidepress.config import Settings, get_settings
from slidepress.jobs.worker import DeployerFactory
from slidepress.storage.factory import get_jobs_repo
from slidepress.storage.jobs_repo import JobsRepository


def get_repo(settings: Settings = Depends(get_settings)) -> JobsRepository:  # noqa: B008
  """Return the process-wide jobs repository."""
  return get_jobs_repo(settings)


def get_slide_generator(settings: Settings = Depends(get_settings)) -> SlideGenerator:  # noqa: B008
  return SlideGenerator(timeout_seconds=settings.generation_timeout_seconds)


def get_deployer_factory() -> DeployerFactory | None:
  """None means the processor builds deployers from settings."""
  return None


def get_github_transport() -> httpx.AsyncBaseTransport | None:
  return None

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from slidepress.config import get_settings
from slidepress.core.logging import initialize_logging
from slidepress.storage.factory import get_jobs_repo


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and the jobs store before serving requests."""
  settings = get_settings()
  logger = logging.getLogger("slidepress.core.lifespan")

  initialize_logging(settings)
  # Build the store eagerly so a misconfigured DynamoDB table fails at startup.
  get_jobs_repo(settings)
  logger.info("Startup complete env=%s jobs_backend=%s", settings.environment, settings.jobs_backend)

  yield

  logger.info("Shutdown complete.")

import threading

from slidepress.config import Settings
from slidepress.storage.jobs_repo import JobsRepository

_REPO_LOCK = threading.Lock()
_REPOS: dict[tuple[str, str, str, str | None], JobsRepository] = {}


def get_jobs_repo(settings: Settings) -> JobsRepository:
  """Return the active jobs repository."""

  # One instance per backend and process so every request shares the same store.
  key = (settings.jobs_backend, settings.dynamodb_table, settings.dynamodb_region, settings.dynamodb_endpoint_url)
  with _REPO_LOCK:
    repo = _REPOS.get(key)
    if repo is None:
      repo = _build_jobs_repo(settings)
      _REPOS[key] = repo
    return repo


def _build_jobs_repo(settings: Settings) -> JobsRepository:
  if settings.jobs_backend == "dynamodb":
    from slidepress.storage.dynamodb_jobs_repo import DynamoJobsRepository

    return DynamoJobsRepository(table_name=settings.dynamodb_table, region=settings.dynamodb_region, endpoint_url=settings.dynamodb_endpoint_url)

  from slidepress.storage.memory_jobs_repo import InMemoryJobsRepository

  return InMemoryJobsRepository()


def reset_jobs_repos() -> None:
  """Drop cached repositories (used by tests and reloads)."""
  with _REPO_LOCK:
    _REPOS.clear()

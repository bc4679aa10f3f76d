"""Storage interfaces for background jobs."""

from __future__ import annotations

from typing import Protocol

from slidepress.jobs.models import JobRecord


class JobAlreadyFinalizedError(RuntimeError):
  """Raised when a write targets a job that already reached a terminal state."""

  def __init__(self, job_id: str) -> None:
    super().__init__(f"Job {job_id} is already finalized.")
    self.job_id = job_id


class JobsRepository(Protocol):
  """Repository contract for job persistence.

  Writes always replace the whole record. Callers own the merge and the store
  never applies partial patches against shared state.
  """

  async def put_job(self, record: JobRecord) -> None:
    """Persist the full job record, replacing any previous version."""

  async def get_job(self, job_id: str) -> JobRecord | None:
    """Fetch a job by identifier, or None when unknown or expired."""

  async def delete_job(self, job_id: str) -> None:
    """Evict a job record."""

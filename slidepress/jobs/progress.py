"""Job progress tracking utilities."""

from __future__ import annotations

import copy
import logging
import time
from collections.abc import Iterable
from typing import Any

from slidepress.jobs.models import JobRecord
from slidepress.storage.jobs_repo import JobAlreadyFinalizedError, JobsRepository

MAX_TRACKED_LOGS = 100

PROGRESS_STARTED = 0
PROGRESS_GENERATING = 10
PROGRESS_RENDERING = 60
PROGRESS_DEPLOYING = 90
PROGRESS_COMPLETE = 100

CHECKPOINTS: tuple[int, ...] = (PROGRESS_STARTED, PROGRESS_GENERATING, PROGRESS_RENDERING, PROGRESS_DEPLOYING, PROGRESS_COMPLETE)

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
  """Return the current time as an ISO-8601 UTC string."""
  return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def new_job_record(job_id: str, *, request: dict[str, Any], ttl_seconds: int | None, now: float | None = None) -> JobRecord:
  """Build the initial processing record for a freshly submitted job."""
  now = time.time() if now is None else now
  timestamp = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(now))
  ttl = int(now) + ttl_seconds if ttl_seconds else None
  return JobRecord(job_id=job_id, status="processing", progress=PROGRESS_STARTED, message="Starting...", created_at=timestamp, updated_at=timestamp, request=request, logs=["Job created."], ttl=ttl)


class JobProgressTracker:
  """Own the authoritative record for one job and persist it at each checkpoint.

  The tracker is the only writer for its job id. Every write replaces the full
  record so a poller never sees a half-applied update.
  """

  def __init__(self, *, record: JobRecord, jobs_repo: JobsRepository, initial_logs: Iterable[str] | None = None) -> None:
    self._record = copy.deepcopy(record)
    self._jobs_repo = jobs_repo
    if initial_logs:
      self.add_logs(*initial_logs)

  @property
  def job_id(self) -> str:
    return self._record.job_id

  @property
  def progress(self) -> int:
    return self._record.progress

  @property
  def logs(self) -> list[str]:
    return list(self._record.logs)

  @property
  def record(self) -> JobRecord:
    return copy.deepcopy(self._record)

  def add_logs(self, *messages: str) -> None:
    """Append log lines while preserving the rolling window."""

    _append_logs(self._record, messages)

  async def checkpoint(self, progress: int, message: str) -> JobRecord:
    """Advance to a processing checkpoint and persist the record."""

    updated = self._next_record()
    # Progress only moves forward even if a caller reports an older checkpoint.
    updated.progress = max(updated.progress, progress)
    updated.message = message
    _append_logs(updated, [message])
    return await self._persist(updated)

  async def complete(self, data: dict[str, Any], *, message: str = "Complete!") -> JobRecord:
    """Mark the job completed with its result payload."""

    updated = self._next_record()
    updated.status = "completed"
    updated.progress = PROGRESS_COMPLETE
    updated.message = message
    updated.data = data
    updated.error = None
    updated.artifacts = None
    updated.completed_at = utc_timestamp()
    _append_logs(updated, ["Job completed successfully."])
    return await self._persist(updated)

  async def fail(self, error: str, *, artifacts: dict[str, Any] | None = None) -> JobRecord:
    """Mark the job failed, keeping the last reached progress value."""

    updated = self._next_record()
    updated.status = "failed"
    updated.message = "Failed"
    updated.error = error
    updated.data = None
    updated.artifacts = artifacts
    updated.failed_at = utc_timestamp()
    _append_logs(updated, [f"Job failed: {error}"])
    return await self._persist(updated)

  def _next_record(self) -> JobRecord:
    if self._record.is_terminal:
      raise JobAlreadyFinalizedError(self._record.job_id)
    return copy.deepcopy(self._record)

  async def _persist(self, updated: JobRecord) -> JobRecord:
    updated.updated_at = updated.completed_at or updated.failed_at or utc_timestamp()
    await self._jobs_repo.put_job(updated)
    # Only adopt the new state once the store accepted it.
    self._record = updated
    logger.debug("Job %s persisted at %s%% (%s)", updated.job_id, updated.progress, updated.status)
    return self.record


def _append_logs(record: JobRecord, messages: Iterable[str]) -> None:
  record.logs.extend(messages)
  if len(record.logs) > MAX_TRACKED_LOGS:
    record.logs = record.logs[-MAX_TRACKED_LOGS:]

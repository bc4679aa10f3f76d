"""Process-local job store for single-instance deployments."""

from __future__ import annotations

import copy
import logging
import threading
import time
from collections.abc import Callable

from slidepress.jobs.models import JobRecord
from slidepress.storage.jobs_repo import JobAlreadyFinalizedError, JobsRepository

logger = logging.getLogger(__name__)


class InMemoryJobsRepository(JobsRepository):
  """Keep job records in a lock-guarded dict.

  Records are deep-copied on the way in and out so a reader never shares
  mutable state with the writer.
  """

  def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
    self._jobs: dict[str, JobRecord] = {}
    self._lock = threading.Lock()
    self._clock = clock

  async def put_job(self, record: JobRecord) -> None:
    snapshot = copy.deepcopy(record)
    with self._lock:
      self._evict_expired_locked()
      current = self._jobs.get(record.job_id)
      # Terminal records are immutable; refuse any later overwrite.
      if current is not None and current.is_terminal:
        raise JobAlreadyFinalizedError(record.job_id)
      self._jobs[record.job_id] = snapshot

  async def get_job(self, job_id: str) -> JobRecord | None:
    with self._lock:
      record = self._jobs.get(job_id)
      if record is None:
        return None
      if self._is_expired(record):
        del self._jobs[job_id]
        logger.debug("Evicted expired job %s on read", job_id)
        return None
      return copy.deepcopy(record)

  async def delete_job(self, job_id: str) -> None:
    with self._lock:
      self._jobs.pop(job_id, None)

  def __len__(self) -> int:
    with self._lock:
      return len(self._jobs)

  def _is_expired(self, record: JobRecord) -> bool:
    return record.ttl is not None and record.ttl <= self._clock()

  def _evict_expired_locked(self) -> None:
    expired = [job_id for job_id, record in self._jobs.items() if self._is_expired(record)]
    for job_id in expired:
      del self._jobs[job_id]
    if expired:
      logger.info("Evicted %d expired job(s)", len(expired))

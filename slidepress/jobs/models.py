"""Domain models for asynchronous slide generation jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

JobStatus = Literal["processing", "completed", "failed"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})


@dataclass
class JobRecord:
  """Represents a background slide generation job."""

  job_id: str
  status: JobStatus
  progress: int
  message: str
  created_at: str
  updated_at: str
  request: dict[str, Any] = field(default_factory=dict)
  logs: list[str] = field(default_factory=list)
  data: dict[str, Any] | None = None
  error: str | None = None
  artifacts: dict[str, Any] | None = None
  completed_at: str | None = None
  failed_at: str | None = None
  ttl: int | None = None

  @property
  def is_terminal(self) -> bool:
    return self.status in TERMINAL_STATUSES

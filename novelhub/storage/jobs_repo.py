"""Storage interface for chapter job records."""

from __future__ import annotations

from typing import Protocol

from novelhub.jobs.models import JobKind, JobLogEntry, JobRecord, JobStatus


class JobsRepository(Protocol):
  """Repository contract for job persistence.

  Status writes from the API side go through ``set_status``. Every write a
  worker makes is conditioned on the run token it claimed with ``claim_run``.
  """

  async def create_job(self, record: JobRecord) -> None:
    """Persist an initial job record."""

  async def get_job(self, job_id: str) -> JobRecord | None:
    """Fetch a job (with logs) by identifier."""

  async def list_jobs(self, *, job_kind: JobKind, limit: int = 20) -> list[JobRecord]:
    """Return the most recently updated jobs of one kind, without logs."""

  async def find_active(self, *, limit: int = 50) -> list[JobRecord]:
    """Return jobs currently marked active."""

  async def delete_job(self, job_id: str) -> bool:
    """Remove a job record; return False when it did not exist."""

  async def set_status(self, job_id: str, status: JobStatus, *, log: JobLogEntry | None = None) -> JobRecord | None:
    """Overwrite the status field and optionally append a log entry."""

  async def append_log(self, job_id: str, entry: JobLogEntry) -> None:
    """Append one log entry; silently ignored when the job is gone."""

  async def claim_run(self, job_id: str, run_token: str) -> JobRecord | None:
    """Take ownership of an active job for one worker run."""

  async def record_chapter_done(self, job_id: str, *, run_token: str, chapter_number: int, count_as_processed: bool) -> JobRecord | None:
    """Pop a chapter from the queue and advance progress counters."""

  async def finish_run(self, job_id: str, *, run_token: str, status: JobStatus) -> bool:
    """Move an owned, still-active job out of active; False when this run no longer owns it."""

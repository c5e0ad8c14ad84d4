"""Job supervisor: API-facing control of translation and title-generation jobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import HTTPException, status

from novelhub.jobs.models import ChapterSelector, JobKind, JobLogEntry, JobRecord, JobStatus, LogSeverity, ensure_resumable, ensure_transition, kind_label
from novelhub.services.tasks.interface import TaskEnqueuer
from novelhub.storage.jobs_repo import JobsRepository
from novelhub.storage.novels_repo import NovelsRepository
from novelhub.storage.settings_repo import SettingsRepository
from novelhub.utils.ids import generate_job_id, utc_now

logger = logging.getLogger(__name__)

JOB_LIST_LIMIT = 20


@dataclass(frozen=True)
class JobDetail:
  record: JobRecord
  novel_max_chapter: int | None = None


def _entry(message: str, severity: LogSeverity = "info") -> JobLogEntry:
  return JobLogEntry(message=message, severity=severity, timestamp=utc_now())


class JobSupervisor:
  """Create, resume, pause and delete job records for one job kind.

  The supervisor only writes the status field and log entries; progress fields
  belong to the worker run that owns the job.
  """

  def __init__(self, *, job_kind: JobKind, jobs_repo: JobsRepository, novels_repo: NovelsRepository, settings_repo: SettingsRepository, enqueuer: TaskEnqueuer) -> None:
    self._job_kind = job_kind
    self._jobs_repo = jobs_repo
    self._novels_repo = novels_repo
    self._settings_repo = settings_repo
    self._enqueuer = enqueuer

  @property
  def job_kind(self) -> JobKind:
    return self._job_kind

  async def list_jobs(self) -> list[JobRecord]:
    return await self._jobs_repo.list_jobs(job_kind=self._job_kind, limit=JOB_LIST_LIMIT)

  async def get_detail(self, job_id: str) -> JobDetail:
    record = await self._require_job(job_id)
    if self._job_kind != "translation":
      return JobDetail(record=record)
    novel = await self._novels_repo.get_novel(record.novel_id)
    return JobDetail(record=record, novel_max_chapter=novel.max_chapter if novel is not None else 0)

  async def start(self, *, novel_id: str, selector: ChapterSelector, api_keys: list[str] | None = None) -> JobRecord:
    """Create an active job for the selected chapters of a novel."""
    novel = await self._novels_repo.get_novel(novel_id)
    if novel is None:
      raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Novel not found")

    override = [key for key in api_keys or [] if key.strip()]
    job_keys: list[str] | None = override or None
    if self._job_kind == "translation":
      # Translation jobs snapshot their effective keys at creation time.
      global_settings = await self._settings_repo.get_or_create()
      job_keys = override or list(global_settings.translator_api_keys)
      if not job_keys:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No API keys found. Please add keys in Settings first.")

    targets = selector.resolve(novel.chapter_numbers)
    message = f"Started {kind_label(self._job_kind)} job for {len(targets)} chapters"
    if job_keys:
      message += f" using {len(job_keys)} keys"
    now = utc_now()
    record = JobRecord(
      job_id=generate_job_id(),
      job_kind=self._job_kind,
      novel_id=novel.novel_id,
      status="active",
      novel_title=novel.title,
      cover=novel.cover,
      target_chapters=targets,
      total_to_process=len(targets),
      logs=[_entry(message + ".")],
      api_keys=job_keys,
      started_at=now,
      updated_at=now,
    )
    await self._jobs_repo.create_job(record)
    logger.info("Created %s job %s for novel %s (%d chapters).", self._job_kind, record.job_id, novel_id, len(targets))
    return record

  async def resume(self, job_id: str) -> JobRecord:
    record = await self._require_job(job_id)
    ensure_resumable(record.status)
    return await self._set_status(job_id, "active", _entry("Job resumed."))

  async def pause(self, job_id: str) -> JobRecord:
    record = await self._require_job(job_id)
    ensure_transition(record.status, "paused")
    return await self._set_status(job_id, "paused", _entry("Pause requested; the job stops after the current chapter.", "warning"))

  async def delete(self, job_id: str) -> None:
    await self._require_job(job_id)
    # An in-flight worker notices the missing record at its next checkpoint.
    if not await self._jobs_repo.delete_job(job_id):
      raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    logger.info("Deleted %s job %s.", self._job_kind, job_id)

  async def dispatch(self, job_id: str) -> None:
    """Hand the job to the configured task enqueuer; mark it failed when that is impossible."""
    try:
      await self._enqueuer.enqueue(job_id, {})
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to enqueue job %s: %s", job_id, exc, exc_info=True)
      record = await self._jobs_repo.get_job(job_id)
      if record is not None and record.status == "active":
        await self._jobs_repo.set_status(job_id, "failed", log=_entry(f"Could not schedule the job: {exc}", "error"))

  async def _require_job(self, job_id: str) -> JobRecord:
    record = await self._jobs_repo.get_job(job_id)
    if record is None or record.job_kind != self._job_kind:
      raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return record

  async def _set_status(self, job_id: str, target: JobStatus, entry: JobLogEntry) -> JobRecord:
    updated = await self._jobs_repo.set_status(job_id, target, log=entry)
    if updated is None:
      raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return updated

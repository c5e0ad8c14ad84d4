"""Postgres-backed repository for chapter jobs using SQLAlchemy."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from novelhub.core.database import get_session_factory
from novelhub.jobs.models import JobKind, JobLogEntry, JobRecord, JobStatus
from novelhub.schema.jobs import ChapterJob, JobEvent
from novelhub.storage.jobs_repo import JobsRepository

_LOG_LIMIT = 200


def _now() -> datetime:
  return datetime.now(UTC)


class PostgresJobsRepository(JobsRepository):
  """Persist jobs and their log events to Postgres."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def create_job(self, record: JobRecord) -> None:
    async with self._session_factory() as session:
      now = _now()
      job = ChapterJob(
        job_id=record.job_id,
        job_kind=record.job_kind,
        novel_id=record.novel_id,
        novel_title=record.novel_title,
        cover=record.cover,
        status=record.status,
        target_chapters=list(record.target_chapters),
        processed_count=record.processed_count,
        total_to_process=record.total_to_process,
        current_chapter=record.current_chapter,
        api_keys=record.api_keys,
        run_token=record.run_token,
        started_at=record.started_at or now,
        created_at=now,
        updated_at=record.updated_at or now,
      )
      session.add(job)
      await session.flush()
      self._add_events(session=session, job_id=record.job_id, entries=record.logs)
      await session.commit()

  async def get_job(self, job_id: str) -> JobRecord | None:
    async with self._session_factory() as session:
      row = await session.get(ChapterJob, job_id)
      if row is None:
        return None
      logs = await self._list_events_in_session(session=session, job_id=job_id)
      return self._model_to_record(row, logs=logs)

  async def list_jobs(self, *, job_kind: JobKind, limit: int = 20) -> list[JobRecord]:
    async with self._session_factory() as session:
      stmt = select(ChapterJob).where(ChapterJob.job_kind == job_kind).order_by(ChapterJob.updated_at.desc()).limit(limit)
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row, logs=[]) for row in rows]

  async def find_active(self, *, limit: int = 50) -> list[JobRecord]:
    async with self._session_factory() as session:
      stmt = select(ChapterJob).where(ChapterJob.status == "active").order_by(ChapterJob.updated_at.asc()).limit(limit)
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row, logs=[]) for row in rows]

  async def delete_job(self, job_id: str) -> bool:
    async with self._session_factory() as session:
      result = await session.execute(delete(ChapterJob).where(ChapterJob.job_id == job_id))
      await session.commit()
      return bool(result.rowcount)

  async def set_status(self, job_id: str, status: JobStatus, *, log: JobLogEntry | None = None) -> JobRecord | None:
    async with self._session_factory() as session:
      row = await session.get(ChapterJob, job_id, with_for_update=True)
      if row is None:
        return None
      row.status = status
      row.updated_at = _now()
      if log is not None:
        self._add_events(session=session, job_id=job_id, entries=[log])
      await session.commit()
      await session.refresh(row)
      logs = await self._list_events_in_session(session=session, job_id=job_id)
      return self._model_to_record(row, logs=logs)

  async def append_log(self, job_id: str, entry: JobLogEntry) -> None:
    async with self._session_factory() as session:
      exists = await session.scalar(select(ChapterJob.job_id).where(ChapterJob.job_id == job_id))
      if exists is None:
        return
      self._add_events(session=session, job_id=job_id, entries=[entry])
      await session.execute(update(ChapterJob).where(ChapterJob.job_id == job_id).values(updated_at=_now()))
      await session.commit()

  async def claim_run(self, job_id: str, run_token: str) -> JobRecord | None:
    async with self._session_factory() as session:
      stmt = update(ChapterJob).where(ChapterJob.job_id == job_id, ChapterJob.status == "active").values(run_token=run_token, updated_at=_now()).returning(ChapterJob.job_id)
      claimed = (await session.execute(stmt)).scalar_one_or_none()
      await session.commit()
      if claimed is None:
        return None
      row = await session.get(ChapterJob, job_id, populate_existing=True)
      if row is None:
        return None
      return self._model_to_record(row, logs=[])

  async def record_chapter_done(self, job_id: str, *, run_token: str, chapter_number: int, count_as_processed: bool) -> JobRecord | None:
    async with self._session_factory() as session:
      row = await session.get(ChapterJob, job_id, with_for_update=True)
      if row is None or row.run_token != run_token:
        await session.rollback()
        return None
      row.target_chapters = [number for number in row.target_chapters if int(number) != chapter_number]
      if count_as_processed:
        row.processed_count = int(row.processed_count) + 1
      row.current_chapter = chapter_number
      row.updated_at = _now()
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row, logs=[])

  async def finish_run(self, job_id: str, *, run_token: str, status: JobStatus) -> bool:
    async with self._session_factory() as session:
      stmt = update(ChapterJob).where(ChapterJob.job_id == job_id, ChapterJob.run_token == run_token, ChapterJob.status == "active").values(status=status, updated_at=_now())
      result = await session.execute(stmt)
      await session.commit()
      return bool(result.rowcount)

  def _add_events(self, *, session: AsyncSession, job_id: str, entries: list[JobLogEntry]) -> None:
    for entry in entries:
      if entry.message.strip() == "":
        continue
      session.add(JobEvent(job_id=job_id, severity=entry.severity, message=entry.message, created_at=entry.timestamp))

  async def _list_events_in_session(self, *, session: AsyncSession, job_id: str) -> list[JobLogEntry]:
    stmt = select(JobEvent).where(JobEvent.job_id == job_id).order_by(JobEvent.created_at.desc(), JobEvent.id.desc()).limit(_LOG_LIMIT)
    rows = (await session.execute(stmt)).scalars().all()
    return [JobLogEntry(message=row.message, severity=row.severity, timestamp=row.created_at) for row in reversed(rows)]

  def _model_to_record(self, row: ChapterJob, *, logs: list[JobLogEntry]) -> JobRecord:
    return JobRecord(
      job_id=row.job_id,
      job_kind=row.job_kind,
      novel_id=row.novel_id,
      status=row.status,
      novel_title=row.novel_title,
      cover=row.cover,
      target_chapters=[int(number) for number in row.target_chapters or []],
      processed_count=int(row.processed_count),
      total_to_process=int(row.total_to_process),
      current_chapter=int(row.current_chapter),
      logs=logs,
      api_keys=list(row.api_keys) if row.api_keys is not None else None,
      run_token=row.run_token,
      started_at=row.started_at,
      updated_at=row.updated_at,
    )

"""Shared fixtures and in-memory collaborators for the test suite."""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Any

# Required settings must exist before the application modules are imported.
os.environ.setdefault("NOVELHUB_ALLOWED_ORIGINS", "http://localhost")
os.environ.setdefault("NOVELHUB_RECOVER_ACTIVE_JOBS", "0")

import pytest  # noqa: E402

from novelhub.config import Settings, get_settings  # noqa: E402
from novelhub.jobs.models import JobKind, JobLogEntry, JobRecord, JobStatus  # noqa: E402
from novelhub.storage.content_store import ChapterContent  # noqa: E402
from novelhub.storage.glossary_repo import GlossaryEntry, GlossaryTermRecord  # noqa: E402
from novelhub.storage.novels_repo import NovelRecord  # noqa: E402
from novelhub.storage.settings_repo import GlobalSettingsRecord  # noqa: E402
from novelhub.utils.ids import utc_now  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


class InMemoryJobsRepo:
  """In-memory jobs repository mirroring the Postgres run-token rules."""

  def __init__(self) -> None:
    self._jobs: dict[str, JobRecord] = {}

  async def create_job(self, record: JobRecord) -> None:
    self._jobs[record.job_id] = record

  async def get_job(self, job_id: str) -> JobRecord | None:
    return self._jobs.get(job_id)

  async def list_jobs(self, *, job_kind: JobKind, limit: int = 20) -> list[JobRecord]:
    records = [record for record in self._jobs.values() if record.job_kind == job_kind]
    records.sort(key=lambda record: record.updated_at or utc_now(), reverse=True)
    return records[:limit]

  async def find_active(self, *, limit: int = 50) -> list[JobRecord]:
    return [record for record in self._jobs.values() if record.status == "active"][:limit]

  async def delete_job(self, job_id: str) -> bool:
    return self._jobs.pop(job_id, None) is not None

  async def set_status(self, job_id: str, status: JobStatus, *, log: JobLogEntry | None = None) -> JobRecord | None:
    record = self._jobs.get(job_id)
    if record is None:
      return None
    logs = [*record.logs, log] if log is not None else record.logs
    updated = replace(record, status=status, logs=logs, updated_at=utc_now())
    self._jobs[job_id] = updated
    return updated

  async def append_log(self, job_id: str, entry: JobLogEntry) -> None:
    record = self._jobs.get(job_id)
    if record is not None:
      self._jobs[job_id] = replace(record, logs=[*record.logs, entry])

  async def claim_run(self, job_id: str, run_token: str) -> JobRecord | None:
    record = self._jobs.get(job_id)
    if record is None or record.status != "active":
      return None
    claimed = replace(record, run_token=run_token)
    self._jobs[job_id] = claimed
    return claimed

  async def record_chapter_done(self, job_id: str, *, run_token: str, chapter_number: int, count_as_processed: bool) -> JobRecord | None:
    record = self._jobs.get(job_id)
    if record is None or record.run_token != run_token:
      return None
    updated = replace(
      record,
      target_chapters=[number for number in record.target_chapters if number != chapter_number],
      processed_count=record.processed_count + (1 if count_as_processed else 0),
      current_chapter=chapter_number,
      updated_at=utc_now(),
    )
    self._jobs[job_id] = updated
    return updated

  async def finish_run(self, job_id: str, *, run_token: str, status: JobStatus) -> bool:
    record = self._jobs.get(job_id)
    if record is None or record.run_token != run_token or record.status != "active":
      return False
    self._jobs[job_id] = replace(record, status=status, updated_at=utc_now())
    return True

  def messages(self, job_id: str) -> list[str]:
    return [entry.message for entry in self._jobs[job_id].logs]


class InMemoryNovelsRepo:
  def __init__(self) -> None:
    self._novels: dict[str, NovelRecord] = {}
    self.chapter_titles: dict[tuple[str, int], str] = {}
    self.marked_new: set[tuple[str, int]] = set()
    self.fail_updates = False

  def add(self, novel: NovelRecord) -> None:
    self._novels[novel.novel_id] = novel

  async def get_novel(self, novel_id: str) -> NovelRecord | None:
    return self._novels.get(novel_id)

  async def update_chapter_metadata(self, novel_id: str, chapter_number: int, *, title: str, mark_as_new: bool = False, publish_if_private: bool = False) -> bool:
    if self.fail_updates:
      raise RuntimeError("metadata store unavailable")
    novel = self._novels.get(novel_id)
    if novel is None:
      raise LookupError(novel_id)
    self.chapter_titles[(novel_id, chapter_number)] = title
    if mark_as_new:
      self.marked_new.add((novel_id, chapter_number))
    if publish_if_private and novel.status == "private":
      self._novels[novel_id] = replace(novel, status="ongoing")
      return True
    return False


class InMemoryGlossaryRepo:
  def __init__(self) -> None:
    self._terms: dict[tuple[str, str], GlossaryTermRecord] = {}
    self._next_id = 1

  async def list_terms(self, novel_id: str) -> list[GlossaryTermRecord]:
    return [record for (owner, _), record in self._terms.items() if owner == novel_id]

  def _write(self, novel_id: str, entry: GlossaryEntry, *, auto_generated: bool | None) -> GlossaryTermRecord:
    existing = self._terms.get((novel_id, entry.term))
    if existing is not None:
      record = replace(existing, translation=entry.translation, category=entry.category, description=entry.description, auto_generated=existing.auto_generated if auto_generated is None else auto_generated)
    else:
      record = GlossaryTermRecord(term_id=self._next_id, novel_id=novel_id, term=entry.term, translation=entry.translation, category=entry.category, description=entry.description, auto_generated=bool(auto_generated is None or auto_generated))
      self._next_id += 1
    self._terms[(novel_id, entry.term)] = record
    return record

  async def upsert_extracted(self, novel_id: str, entries: list[GlossaryEntry]) -> int:
    for entry in entries:
      self._write(novel_id, entry, auto_generated=None)
    return len(entries)

  async def upsert_manual(self, novel_id: str, entry: GlossaryEntry) -> GlossaryTermRecord:
    return self._write(novel_id, entry, auto_generated=False)

  async def delete_term(self, term_id: int) -> bool:
    return await self.delete_terms([term_id]) == 1

  async def delete_terms(self, term_ids: list[int]) -> int:
    doomed = [key for key, record in self._terms.items() if record.term_id in term_ids]
    for key in doomed:
      del self._terms[key]
    return len(doomed)


class InMemorySettingsRepo:
  def __init__(self, record: GlobalSettingsRecord | None = None) -> None:
    self.record = record or GlobalSettingsRecord()

  async def get_or_create(self) -> GlobalSettingsRecord:
    return self.record

  async def update(self, changes: dict[str, Any]) -> GlobalSettingsRecord:
    self.record = replace(self.record, **changes)
    return self.record


class FakeContentStore:
  """Dict-backed chapter store with Firestore-style merge writes."""

  def __init__(self) -> None:
    self.chapters: dict[tuple[str, int], ChapterContent] = {}
    self.fail_saves = False

  def put(self, novel_id: str, chapter_number: int, content: str, title: str | None = None) -> None:
    self.chapters[(novel_id, chapter_number)] = ChapterContent(content=content, title=title)

  async def get_chapter(self, novel_id: str, chapter_number: int) -> ChapterContent | None:
    return self.chapters.get((novel_id, chapter_number))

  async def save_chapter(self, novel_id: str, chapter_number: int, *, content: str | None = None, title: str | None = None) -> None:
    if self.fail_saves:
      raise RuntimeError("content store unavailable")
    existing = self.chapters.get((novel_id, chapter_number), ChapterContent(content=""))
    self.chapters[(novel_id, chapter_number)] = ChapterContent(content=existing.content if content is None else content, title=existing.title if title is None else title)


@dataclass
class TextCall:
  model: str
  api_key: str
  prompt: str
  json_output: bool


TextHandler = Callable[[TextCall], Awaitable[str]]


class ScriptedTextClient:
  """Text client that records every call and delegates the answer to a handler."""

  def __init__(self, handler: TextHandler) -> None:
    self._handler = handler
    self.calls: list[TextCall] = []

  async def generate(self, *, model: str, api_key: str, prompt: str, json_output: bool = False) -> str:
    call = TextCall(model=model, api_key=api_key, prompt=prompt, json_output=json_output)
    self.calls.append(call)
    return await self._handler(call)


@pytest.fixture
def settings() -> Settings:
  """Application settings with every worker delay removed."""
  return replace(
    get_settings(),
    translation_rate_limit_delay_seconds=0,
    translation_chapter_delay_seconds=0,
    title_rate_limit_delay_seconds=0,
    title_chapter_delay_seconds=0,
    max_rate_limit_retries=None,
  )


@pytest.fixture
def jobs_repo() -> InMemoryJobsRepo:
  return InMemoryJobsRepo()


@pytest.fixture
def novels_repo() -> InMemoryNovelsRepo:
  return InMemoryNovelsRepo()


@pytest.fixture
def glossary_repo() -> InMemoryGlossaryRepo:
  return InMemoryGlossaryRepo()


@pytest.fixture
def settings_repo() -> InMemorySettingsRepo:
  return InMemorySettingsRepo(GlobalSettingsRecord(translator_api_keys=["k1", "k2"]))


@pytest.fixture
def content_store() -> FakeContentStore:
  return FakeContentStore()


@pytest.fixture
def scripted_client() -> Callable[[TextHandler], ScriptedTextClient]:
  return ScriptedTextClient


@pytest.fixture
def make_job(jobs_repo: InMemoryJobsRepo) -> Callable[..., Awaitable[JobRecord]]:
  """Seed an active job directly in the jobs repository."""

  async def _make_job(job_kind: JobKind, novel_id: str, chapters: list[int], *, job_id: str = "job-1", api_keys: list[str] | None = None, status: JobStatus = "active") -> JobRecord:
    record = JobRecord(
      job_id=job_id,
      job_kind=job_kind,
      novel_id=novel_id,
      status=status,
      target_chapters=list(chapters),
      total_to_process=len(chapters),
      api_keys=api_keys,
      started_at=utc_now(),
      updated_at=utc_now(),
    )
    await jobs_repo.create_job(record)
    return record

  return _make_job

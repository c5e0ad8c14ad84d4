from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator
from pydantic.alias_generators import to_camel

from novelhub.jobs.models import ChapterSelector, JobLogEntry, JobRecord, JobStatus, LogSeverity
from novelhub.storage.glossary_repo import GlossaryCategory, GlossaryTermRecord


class CamelModel(BaseModel):
  """Base model that speaks the platform's camelCase JSON."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
  message: str


class JobLogModel(CamelModel):
  message: str
  severity: LogSeverity
  timestamp: datetime

  @classmethod
  def from_entry(cls, entry: JobLogEntry) -> JobLogModel:
    return cls(message=entry.message, severity=entry.severity, timestamp=entry.timestamp)


class JobSummary(CamelModel):
  """Lightweight row for job lists; omits logs, queue and credentials."""

  id: str
  novel_id: str
  novel_title: str | None = None
  cover: str | None = None
  status: JobStatus
  processed_count: int
  total_to_process: int
  start_time: datetime | None = None

  @classmethod
  def from_record(cls, record: JobRecord) -> JobSummary:
    return cls(
      id=record.job_id,
      novel_id=record.novel_id,
      novel_title=record.novel_title,
      cover=record.cover,
      status=record.status,
      processed_count=record.processed_count,
      total_to_process=record.total_to_process,
      start_time=record.started_at,
    )


class JobDetailResponse(JobSummary):
  target_chapters: list[int]
  current_chapter: int
  logs: list[JobLogModel]
  last_update: datetime | None = None
  novel_max_chapter: int | None = None

  @classmethod
  def from_detail(cls, record: JobRecord, *, novel_max_chapter: int | None = None) -> JobDetailResponse:
    summary = JobSummary.from_record(record)
    return cls(
      **summary.model_dump(),
      target_chapters=list(record.target_chapters),
      current_chapter=record.current_chapter,
      logs=[JobLogModel.from_entry(entry) for entry in record.logs],
      last_update=record.updated_at,
      novel_max_chapter=novel_max_chapter,
    )


class StartJobRequest(CamelModel):
  """Start a job, or resume one when ``jobId`` is given."""

  novel_id: StrictStr | None = Field(default=None, min_length=1)
  chapters: Literal["all"] | list[int] | None = None
  resume_from: int | None = Field(default=None, ge=0)
  api_keys: list[StrictStr] | None = None
  job_id: StrictStr | None = None
  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

  @model_validator(mode="after")
  def _require_target(self) -> StartJobRequest:
    if self.job_id is None and self.novel_id is None:
      raise ValueError("novelId is required when starting a new job.")
    return self

  def selector(self) -> ChapterSelector:
    if self.chapters == "all":
      return ChapterSelector(all_chapters=True, resume_from=self.resume_from)
    return ChapterSelector(numbers=tuple(self.chapters or ()), resume_from=self.resume_from)


class StartJobResponse(CamelModel):
  message: str
  job_id: str


class TranslatorSettingsModel(CamelModel):
  custom_prompt: str | None = None
  translator_extract_prompt: str | None = None
  translator_model: str | None = None
  translator_api_keys: list[str] | None = None


class TitleGenSettingsModel(CamelModel):
  prompt: str | None = None
  model: str | None = None
  api_keys: list[str] | None = None


class GlossaryTermModel(CamelModel):
  id: int
  novel_id: str
  term: str
  translation: str
  category: GlossaryCategory
  description: str
  auto_generated: bool

  @classmethod
  def from_record(cls, record: GlossaryTermRecord) -> GlossaryTermModel:
    return cls(
      id=record.term_id,
      novel_id=record.novel_id,
      term=record.term,
      translation=record.translation,
      category=record.category,
      description=record.description,
      auto_generated=record.auto_generated,
    )


class GlossaryUpsertRequest(CamelModel):
  novel_id: StrictStr = Field(min_length=1)
  term: StrictStr = Field(min_length=1)
  translation: StrictStr = Field(min_length=1)
  category: str | None = None
  description: str | None = None


class BulkDeleteRequest(CamelModel):
  ids: list[int] = Field(min_length=1)


class SuccessResponse(CamelModel):
  success: bool = True
  deleted: int | None = None

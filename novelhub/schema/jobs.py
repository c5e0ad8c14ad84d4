from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from novelhub.core.database import Base


class ChapterJob(Base):
  __tablename__ = "chapter_jobs"

  job_id: Mapped[str] = mapped_column(String, primary_key=True)
  job_kind: Mapped[str] = mapped_column(String, nullable=False, index=True)
  novel_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
  novel_title: Mapped[str | None] = mapped_column(String, nullable=True)
  cover: Mapped[str | None] = mapped_column(String, nullable=True)
  status: Mapped[str] = mapped_column(String, nullable=False, index=True)
  target_chapters: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
  processed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  total_to_process: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  current_chapter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  api_keys: Mapped[list | None] = mapped_column(JSONB, nullable=True)
  run_token: Mapped[str | None] = mapped_column(String, nullable=True)
  started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)


class JobEvent(Base):
  __tablename__ = "chapter_job_events"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  job_id: Mapped[str] = mapped_column(ForeignKey("chapter_jobs.job_id", ondelete="CASCADE"), nullable=False, index=True)
  severity: Mapped[str] = mapped_column(String, nullable=False)
  message: Mapped[str] = mapped_column(Text, nullable=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

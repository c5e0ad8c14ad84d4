from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from novelhub.core.database import Base

NOVEL_STATUS_PRIVATE = "private"
NOVEL_STATUS_ONGOING = "ongoing"


class Novel(Base):
  __tablename__ = "novels"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  cover: Mapped[str | None] = mapped_column(String, nullable=True)
  author: Mapped[str | None] = mapped_column(String, nullable=True)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  status: Mapped[str] = mapped_column(String, nullable=False, default=NOVEL_STATUS_PRIVATE, index=True)
  last_chapter_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  chapters: Mapped[list[NovelChapter]] = relationship(back_populates="novel", cascade="all, delete-orphan", order_by="NovelChapter.number")


class NovelChapter(Base):
  """Chapter metadata row; the chapter body lives in the content store."""

  __tablename__ = "novel_chapters"
  __table_args__ = (UniqueConstraint("novel_id", "number", name="ux_novel_chapters_novel_number"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  novel_id: Mapped[str] = mapped_column(ForeignKey("novels.id", ondelete="CASCADE"), nullable=False, index=True)
  number: Mapped[int] = mapped_column(Integer, nullable=False)
  title: Mapped[str] = mapped_column(String, nullable=False, default="")
  views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  novel: Mapped[Novel] = relationship(back_populates="chapters")

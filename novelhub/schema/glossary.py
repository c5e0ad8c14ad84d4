from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from novelhub.core.database import Base


class GlossaryTerm(Base):
  __tablename__ = "glossary_terms"
  __table_args__ = (UniqueConstraint("novel_id", "term", name="ux_glossary_terms_novel_term"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  novel_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
  term: Mapped[str] = mapped_column(String, nullable=False)
  translation: Mapped[str] = mapped_column(String, nullable=False)
  category: Mapped[str] = mapped_column(String, nullable=False, default="other")
  description: Mapped[str] = mapped_column(Text, nullable=False, default="")
  auto_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

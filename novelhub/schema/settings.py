from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from novelhub.core.database import Base

GLOBAL_SETTINGS_ID = 1


class GlobalSettings(Base):
  """Process-wide settings row; created with defaults on first read."""

  __tablename__ = "global_settings"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, default=GLOBAL_SETTINGS_ID)
  provider: Mapped[str] = mapped_column(String, nullable=False, default="gemini")
  model: Mapped[str] = mapped_column(String, nullable=False, default="gemini-1.5-flash")
  temperature: Mapped[float] = mapped_column(Float, nullable=False, default=0.7)
  custom_prompt: Mapped[str] = mapped_column(Text, nullable=False, default="")
  translator_model: Mapped[str] = mapped_column(String, nullable=False, default="gemini-2.5-flash")
  translator_extract_prompt: Mapped[str] = mapped_column(Text, nullable=False, default="")
  translator_api_keys: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
  title_gen_model: Mapped[str] = mapped_column(String, nullable=False, default="gemini-2.5-flash")
  title_gen_prompt: Mapped[str] = mapped_column(Text, nullable=False, default="")
  title_gen_api_keys: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

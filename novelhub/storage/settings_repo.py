"""Storage interface for the global settings singleton."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class GlobalSettingsRecord:
  provider: str = "gemini"
  model: str = "gemini-1.5-flash"
  temperature: float = 0.7
  custom_prompt: str = ""
  translator_model: str = "gemini-2.5-flash"
  translator_extract_prompt: str = ""
  translator_api_keys: list[str] = field(default_factory=list)
  title_gen_model: str = "gemini-2.5-flash"
  title_gen_prompt: str = ""
  title_gen_api_keys: list[str] = field(default_factory=list)


SETTINGS_FIELDS: frozenset[str] = frozenset(GlobalSettingsRecord.__dataclass_fields__)


class SettingsRepository(Protocol):
  async def get_or_create(self) -> GlobalSettingsRecord:
    """Return the settings row, creating it with defaults when missing."""

  async def update(self, changes: dict[str, Any]) -> GlobalSettingsRecord:
    """Apply a partial update and return the stored settings."""

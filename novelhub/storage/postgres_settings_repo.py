"""Postgres-backed repository for the global settings row."""

from __future__ import annotations

from typing import Any

from novelhub.core.database import get_session_factory
from novelhub.schema.settings import GLOBAL_SETTINGS_ID, GlobalSettings
from novelhub.storage.settings_repo import SETTINGS_FIELDS, GlobalSettingsRecord, SettingsRepository


class PostgresSettingsRepository(SettingsRepository):
  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def get_or_create(self) -> GlobalSettingsRecord:
    async with self._session_factory() as session:
      row = await session.get(GlobalSettings, GLOBAL_SETTINGS_ID)
      if row is None:
        defaults = GlobalSettingsRecord()
        row = GlobalSettings(id=GLOBAL_SETTINGS_ID, **{name: getattr(defaults, name) for name in SETTINGS_FIELDS})
        session.add(row)
        await session.commit()
        await session.refresh(row)
      return self._model_to_record(row)

  async def update(self, changes: dict[str, Any]) -> GlobalSettingsRecord:
    unknown = set(changes) - SETTINGS_FIELDS
    if unknown:
      raise ValueError(f"Unknown settings fields: {sorted(unknown)}")
    await self.get_or_create()
    async with self._session_factory() as session:
      row = await session.get(GlobalSettings, GLOBAL_SETTINGS_ID, with_for_update=True)
      for name, value in changes.items():
        setattr(row, name, value)
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row)

  def _model_to_record(self, row: GlobalSettings) -> GlobalSettingsRecord:
    return GlobalSettingsRecord(
      provider=row.provider,
      model=row.model,
      temperature=float(row.temperature),
      custom_prompt=row.custom_prompt or "",
      translator_model=row.translator_model,
      translator_extract_prompt=row.translator_extract_prompt or "",
      translator_api_keys=[str(key) for key in row.translator_api_keys or []],
      title_gen_model=row.title_gen_model,
      title_gen_prompt=row.title_gen_prompt or "",
      title_gen_api_keys=[str(key) for key in row.title_gen_api_keys or []],
    )

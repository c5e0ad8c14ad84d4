"""Postgres-backed glossary repository."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert

from novelhub.core.database import get_session_factory
from novelhub.schema.glossary import GlossaryTerm
from novelhub.storage.glossary_repo import GlossaryEntry, GlossaryRepository, GlossaryTermRecord


class PostgresGlossaryRepository(GlossaryRepository):
  """Store glossary terms keyed by ``(novel_id, term)``."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def list_terms(self, novel_id: str) -> list[GlossaryTermRecord]:
    async with self._session_factory() as session:
      stmt = select(GlossaryTerm).where(GlossaryTerm.novel_id == novel_id).order_by(GlossaryTerm.category.asc(), GlossaryTerm.term.asc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row) for row in rows]

  async def upsert_extracted(self, novel_id: str, entries: list[GlossaryEntry]) -> int:
    if not entries:
      return 0
    # Last occurrence wins when the model repeats a term in one response.
    unique = {entry.term: entry for entry in entries}
    now = datetime.now(UTC)
    values = [
      {"novel_id": novel_id, "term": entry.term, "translation": entry.translation, "category": entry.category, "description": entry.description, "auto_generated": True, "created_at": now, "updated_at": now}
      for entry in unique.values()
    ]
    stmt = insert(GlossaryTerm).values(values)
    stmt = stmt.on_conflict_do_update(
      index_elements=[GlossaryTerm.novel_id, GlossaryTerm.term],
      set_={"translation": stmt.excluded.translation, "category": stmt.excluded.category, "description": stmt.excluded.description, "updated_at": now},
    )
    async with self._session_factory() as session:
      await session.execute(stmt)
      await session.commit()
    return len(values)

  async def upsert_manual(self, novel_id: str, entry: GlossaryEntry) -> GlossaryTermRecord:
    now = datetime.now(UTC)
    stmt = insert(GlossaryTerm).values(novel_id=novel_id, term=entry.term, translation=entry.translation, category=entry.category, description=entry.description, auto_generated=False, created_at=now, updated_at=now)
    stmt = stmt.on_conflict_do_update(
      index_elements=[GlossaryTerm.novel_id, GlossaryTerm.term],
      set_={"translation": entry.translation, "category": entry.category, "description": entry.description, "auto_generated": False, "updated_at": now},
    ).returning(GlossaryTerm)
    async with self._session_factory() as session:
      row = (await session.execute(stmt)).scalar_one()
      await session.commit()
      return self._model_to_record(row)

  async def delete_term(self, term_id: int) -> bool:
    async with self._session_factory() as session:
      result = await session.execute(delete(GlossaryTerm).where(GlossaryTerm.id == term_id))
      await session.commit()
      return bool(result.rowcount)

  async def delete_terms(self, term_ids: list[int]) -> int:
    if not term_ids:
      return 0
    async with self._session_factory() as session:
      result = await session.execute(delete(GlossaryTerm).where(GlossaryTerm.id.in_(term_ids)))
      await session.commit()
      return int(result.rowcount or 0)

  def _model_to_record(self, row: GlossaryTerm) -> GlossaryTermRecord:
    return GlossaryTermRecord(
      term_id=int(row.id),
      novel_id=row.novel_id,
      term=row.term,
      translation=row.translation,
      category=row.category,
      description=row.description or "",
      auto_generated=bool(row.auto_generated),
    )

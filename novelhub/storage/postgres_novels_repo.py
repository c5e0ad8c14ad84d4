"""Postgres-backed repository for novel and chapter metadata."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select

from novelhub.core.database import get_session_factory
from novelhub.schema.novels import NOVEL_STATUS_ONGOING, NOVEL_STATUS_PRIVATE, Novel, NovelChapter
from novelhub.storage.novels_repo import NovelRecord, NovelsRepository


class PostgresNovelsRepository(NovelsRepository):
  """Read novel indexes and mirror chapter titles into Postgres."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def get_novel(self, novel_id: str) -> NovelRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Novel, novel_id)
      if row is None:
        return None
      stmt = select(NovelChapter.number).where(NovelChapter.novel_id == novel_id).order_by(NovelChapter.number.asc())
      numbers = [int(number) for number in (await session.execute(stmt)).scalars().all()]
      return NovelRecord(novel_id=row.id, title=row.title, cover=row.cover, status=row.status, chapter_numbers=numbers)

  async def update_chapter_metadata(self, novel_id: str, chapter_number: int, *, title: str, mark_as_new: bool = False, publish_if_private: bool = False) -> bool:
    async with self._session_factory() as session:
      novel = await session.get(Novel, novel_id, with_for_update=True)
      if novel is None:
        raise LookupError(f"Novel {novel_id} not found")
      now = datetime.now(UTC)
      stmt = select(NovelChapter).where(NovelChapter.novel_id == novel_id, NovelChapter.number == chapter_number)
      chapter = (await session.execute(stmt)).scalar_one_or_none()
      # Only chapters already in the index are touched.
      if chapter is not None:
        chapter.title = title
        if mark_as_new:
          chapter.created_at = now
      novel.last_chapter_update = now
      published = False
      if publish_if_private and novel.status == NOVEL_STATUS_PRIVATE:
        novel.status = NOVEL_STATUS_ONGOING
        published = True
      await session.commit()
      return published

"""Chapter body storage backed by Firestore documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from firebase_admin import firestore
from starlette.concurrency import run_in_threadpool

from novelhub.core.firebase import get_firestore_client


@dataclass(frozen=True)
class ChapterContent:
  content: str
  title: str | None = None


class ChapterContentStore(Protocol):
  async def get_chapter(self, novel_id: str, chapter_number: int) -> ChapterContent | None:
    """Return the stored chapter body, or None when the document is missing."""

  async def save_chapter(self, novel_id: str, chapter_number: int, *, content: str | None = None, title: str | None = None) -> None:
    """Merge the given fields into the chapter document and stamp ``lastUpdated``."""


class FirestoreContentStore(ChapterContentStore):
  """Reads and writes ``novels/{novelId}/chapters/{number}`` documents."""

  def __init__(self, client: Any) -> None:
    self._client = client

  def _document(self, novel_id: str, chapter_number: int) -> Any:
    return self._client.collection("novels").document(novel_id).collection("chapters").document(str(chapter_number))

  async def get_chapter(self, novel_id: str, chapter_number: int) -> ChapterContent | None:
    snapshot = await run_in_threadpool(self._document(novel_id, chapter_number).get)
    if not snapshot.exists:
      return None
    data = snapshot.to_dict() or {}
    return ChapterContent(content=str(data.get("content") or ""), title=data.get("title"))

  async def save_chapter(self, novel_id: str, chapter_number: int, *, content: str | None = None, title: str | None = None) -> None:
    payload: dict[str, Any] = {"lastUpdated": firestore.SERVER_TIMESTAMP}
    if content is not None:
      payload["content"] = content
    if title is not None:
      payload["title"] = title
    await run_in_threadpool(self._document(novel_id, chapter_number).set, payload, merge=True)


def build_content_store() -> ChapterContentStore | None:
  """Return a Firestore-backed store, or None when Firebase is not configured."""
  client = get_firestore_client()
  if client is None:
    return None
  return FirestoreContentStore(client)

"""Storage interface for novel and chapter metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class NovelRecord:
  novel_id: str
  title: str
  cover: str | None
  status: str
  chapter_numbers: list[int] = field(default_factory=list)

  @property
  def max_chapter(self) -> int:
    return max(self.chapter_numbers, default=0)


class NovelsRepository(Protocol):
  async def get_novel(self, novel_id: str) -> NovelRecord | None:
    """Fetch a novel with its chapter numbers."""

  async def update_chapter_metadata(self, novel_id: str, chapter_number: int, *, title: str, mark_as_new: bool = False, publish_if_private: bool = False) -> bool:
    """Write a chapter title mirror and bump the novel's last update.

    Returns True when the call flipped a private novel to ongoing.
    """

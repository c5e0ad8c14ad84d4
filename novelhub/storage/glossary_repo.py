"""Storage interface for per-novel glossary terms."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

GlossaryCategory = Literal["characters", "locations", "items", "ranks", "other"]


@dataclass(frozen=True)
class GlossaryEntry:
  """A term ready to be written to the glossary."""

  term: str
  translation: str
  category: GlossaryCategory
  description: str = ""


@dataclass(frozen=True)
class GlossaryTermRecord:
  term_id: int
  novel_id: str
  term: str
  translation: str
  category: GlossaryCategory
  description: str
  auto_generated: bool


class GlossaryRepository(Protocol):
  async def list_terms(self, novel_id: str) -> list[GlossaryTermRecord]:
    """Return every term for a novel."""

  async def upsert_extracted(self, novel_id: str, entries: list[GlossaryEntry]) -> int:
    """Insert or overwrite terms found by extraction; return how many were written."""

  async def upsert_manual(self, novel_id: str, entry: GlossaryEntry) -> GlossaryTermRecord:
    """Insert or overwrite an operator-edited term."""

  async def delete_term(self, term_id: int) -> bool:
    """Delete one term by id."""

  async def delete_terms(self, term_ids: list[int]) -> int:
    """Delete several terms by id; return the number removed."""

"""Glossary normalization for extracted and operator-edited terms."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any, get_args

from novelhub.ai.json_parser import parse_json_with_fallback
from novelhub.storage.glossary_repo import GlossaryCategory, GlossaryEntry, GlossaryRepository, GlossaryTermRecord

logger = logging.getLogger(__name__)

GLOSSARY_CATEGORIES: tuple[GlossaryCategory, ...] = get_args(GlossaryCategory)

# Singular labels the extraction prompt asks for, mapped onto stored categories.
_CATEGORY_SYNONYMS: dict[str, GlossaryCategory] = {
  "character": "characters",
  "location": "locations",
  "item": "items",
  "rank": "ranks",
  "concept": "other",
}


def normalize_category(raw: Any) -> GlossaryCategory:
  """Map a free-form category label onto one of the stored categories."""
  if not isinstance(raw, str):
    return "other"
  label = raw.strip().lower()
  if label in GLOSSARY_CATEGORIES:
    return label  # type: ignore[return-value]
  return _CATEGORY_SYNONYMS.get(label, "other")


def _candidate_items(payload: Any) -> list[Any]:
  if isinstance(payload, list):
    return payload
  if isinstance(payload, dict):
    for key in ("newTerms", "terms"):
      items = payload.get(key)
      if isinstance(items, list):
        return items
  return []


def _entry_from_item(item: Any) -> GlossaryEntry | None:
  if not isinstance(item, dict):
    return None
  term = item.get("name") or item.get("term")
  translation = item.get("translation")
  if not isinstance(term, str) or not isinstance(translation, str):
    return None
  term = term.strip()
  translation = translation.strip()
  if not term or not translation:
    return None
  description = item.get("description")
  return GlossaryEntry(
    term=term,
    translation=translation,
    category=normalize_category(item.get("category")),
    description=description.strip() if isinstance(description, str) else "",
  )


def parse_glossary_candidates(raw: str) -> list[GlossaryEntry]:
  """Parse extraction output into glossary entries.

  Accepts a JSON array, or an object carrying the array under ``newTerms`` or
  ``terms``, optionally wrapped in a Markdown code fence. Malformed JSON and
  wrong-shape items yield no entries instead of raising.
  """
  try:
    payload = parse_json_with_fallback(raw)
  except (json.JSONDecodeError, ValueError) as exc:
    logger.warning("Glossary extraction returned unparseable JSON: %s", exc)
    return []
  entries: list[GlossaryEntry] = []
  for item in _candidate_items(payload):
    entry = _entry_from_item(item)
    if entry is not None:
      entries.append(entry)
  return entries


def glossary_pairs(terms: Iterable[GlossaryTermRecord]) -> list[tuple[str, str]]:
  return [(term.term, term.translation) for term in terms]


class GlossaryService:
  """Operator-facing glossary operations."""

  def __init__(self, repo: GlossaryRepository) -> None:
    self._repo = repo

  async def list_terms(self, novel_id: str) -> list[GlossaryTermRecord]:
    return await self._repo.list_terms(novel_id)

  async def upsert_manual(self, *, novel_id: str, term: str, translation: str, category: str | None, description: str | None) -> GlossaryTermRecord:
    entry = GlossaryEntry(term=term.strip(), translation=translation.strip(), category=normalize_category(category), description=(description or "").strip())
    if not entry.term or not entry.translation:
      raise ValueError("Glossary term and translation must not be empty.")
    return await self._repo.upsert_manual(novel_id, entry)

  async def delete_term(self, term_id: int) -> bool:
    return await self._repo.delete_term(term_id)

  async def bulk_delete(self, term_ids: list[int]) -> int:
    return await self._repo.delete_terms(term_ids)

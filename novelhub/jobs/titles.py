"""Chapter title helpers for translated text and generated titles."""

from __future__ import annotations

import re

_CHAPTER_WORDS = ("الفصل", "Chapter")
_QUOTE_CHARS_RE = re.compile(r"[\"'«»]")
_CHAPTER_PREFIX_RE = re.compile(r"الفصل\s*\d+[:\-]?\s*")


def fallback_title(chapter_number: int) -> str:
  return f"الفصل {chapter_number}"


def derive_translated_title(translated_text: str, chapter_number: int) -> str:
  """Take the title from a leading ``Chapter N: Title`` line of a translation."""
  first_line = next((line.strip() for line in translated_text.splitlines() if line.strip()), "")
  if first_line and any(word in first_line for word in _CHAPTER_WORDS) and ":" in first_line:
    candidate = first_line.split(":", 1)[1].strip()
    if candidate:
      return candidate
  return fallback_title(chapter_number)


def clean_generated_title(raw_title: str) -> str:
  """Strip quotes and a leading ``الفصل N:`` prefix from model output."""
  title = _QUOTE_CHARS_RE.sub("", raw_title.strip())
  title = _CHAPTER_PREFIX_RE.sub("", title, count=1)
  return title.strip()

"""Default prompts and prompt composition for chapter jobs."""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_TRANSLATION_PROMPT = "You are a professional translator. Translate the novel chapter from English to Arabic. Output ONLY the Arabic translation. Use the glossary provided."

DEFAULT_TITLE_PROMPT = (
  "Read the following chapter content and suggest a short, engaging, and professional Arabic title for it (Maximum 6 words). "
  "Output ONLY the Arabic title string without any quotes, prefixes, or chapter numbers."
)

DEFAULT_EXTRACT_PROMPT = """ROLE: Expert Web Novel Terminology Extractor.
TASK: Analyze the "English Text" and "Arabic Translation" below. Extract key proper nouns, unique concepts, and specific terminology for a comprehensive Glossary (Codex).

STRICT RULES:
1.  Categories: Classify each extracted term into one of: 'character', 'location', 'item', 'rank', 'concept', 'other'.
    *   character: Names of individuals, specific titles referring to a person.
    *   location: Cities, villages, geographical regions, buildings, headquarters.
    *   item: Tools, weapons, materials, unique objects, or specific creatures.
    *   rank: General military, social, or cultivation ranks (not specific character names).
    *   concept: Spiritual, philosophical, agricultural terms, general techniques, or abstract ideas.
    *   other: Any other important term that doesn't fit the above categories.
2.  Format: Return a clean JSON array of objects.
3.  Content:
    *   "name": The exact English name (Capitalized where appropriate).
    *   "translation": The exact Arabic translation used in the text.
    *   "description": A very short Arabic description (2-4 words), e.g. "البطل الرئيسي".
4.  Filtering:
    *   Ignore common words. Only specific names, places, unique cultivation terms, and key concepts should be extracted.
    *   Never extract bare numbers or chapter numbers, system notifications (Ding, Level Up), reader calls to action or translator notes, or ordinary verbs and adjectives.
5.  Accuracy:
    *   Each extracted English term must be unique.
    *   The Arabic translation must exactly match the word or phrase used in the provided Arabic text.

OUTPUT JSON STRUCTURE:
[
  { "category": "character", "name": "Fang Yuan", "translation": "فانغ يوان", "description": "البطل الرئيسي" },
  { "category": "concept", "name": "Immortal Gu", "translation": "غو الخالد", "description": "عنصر زراعة" },
  { "category": "location", "name": "Green Mountain Sect", "translation": "طائفة الجبل الأخضر", "description": "مقر الطائفة" }
]

RETURN ONLY JSON:"""


def format_glossary_context(pairs: Iterable[tuple[str, str]]) -> str:
  """Render glossary terms as ``"term": "translation"`` lines."""
  return ",\n".join(f'"{term}": "{translation}"' for term, translation in pairs)


def build_translation_prompt(system_prompt: str, glossary_context: str, source: str) -> str:
  return f"""
{system_prompt}

--- GLOSSARY (Use these strictly) ---
{glossary_context}
-------------------------------------

--- ENGLISH Text TO TRANSLATE ---
{source}
---------------------------------
"""


def build_extraction_prompt(extract_prompt: str, source: str, translated: str, excerpt_chars: int) -> str:
  return f'''
{extract_prompt}

English Text (Excerpt):
"""{source[:excerpt_chars]}"""

Arabic Text (Excerpt):
"""{translated[:excerpt_chars]}"""
'''


def build_title_prompt(system_prompt: str, source: str, excerpt_chars: int) -> str:
  return f"""
{system_prompt}

--- CHAPTER CONTENT ---
{source[:excerpt_chars]}
-----------------------
"""

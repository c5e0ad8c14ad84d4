"""Translation worker: translate chapters and grow the novel glossary."""

from __future__ import annotations

import logging
from typing import Any

from novelhub.ai.prompts import DEFAULT_EXTRACT_PROMPT, DEFAULT_TRANSLATION_PROMPT, build_extraction_prompt, build_translation_prompt, format_glossary_context
from novelhub.ai.providers.gemini import GeminiTextClient
from novelhub.jobs.models import JobKind, JobRecord
from novelhub.jobs.pipeline import ChapterOutcome, ChapterPipeline, ChapterRun, PipelineConfig
from novelhub.jobs.titles import derive_translated_title
from novelhub.services.glossary import glossary_pairs, parse_glossary_candidates
from novelhub.storage.glossary_repo import GlossaryRepository
from novelhub.storage.settings_repo import GlobalSettingsRecord

logger = logging.getLogger(__name__)


class TranslationPipeline(ChapterPipeline):
  job_kind: JobKind = "translation"

  def __init__(self, *, glossary_repo: GlossaryRepository, **kwargs: Any) -> None:
    super().__init__(**kwargs)
    self._glossary_repo = glossary_repo

  def build_config(self, job: JobRecord, global_settings: GlobalSettingsRecord) -> PipelineConfig:
    keys = job.api_keys or global_settings.translator_api_keys
    return PipelineConfig(
      model=global_settings.translator_model or GeminiTextClient.DEFAULT_MODEL,
      system_prompt=global_settings.custom_prompt or DEFAULT_TRANSLATION_PROMPT,
      extract_prompt=global_settings.translator_extract_prompt or DEFAULT_EXTRACT_PROMPT,
      api_keys=tuple(keys),
      rate_limit_delay_seconds=self._settings.translation_rate_limit_delay_seconds,
      chapter_delay_seconds=self._settings.translation_chapter_delay_seconds,
      max_rate_limit_retries=self._settings.max_rate_limit_retries,
      excerpt_chars=self._settings.extraction_excerpt_chars,
    )

  async def process_chapter(self, run: ChapterRun, chapter_number: int) -> ChapterOutcome:
    job_id = run.job.job_id
    novel_id = run.novel.novel_id

    if not await self.chapter_indexed(run, chapter_number):
      await self.log(job_id, f"Chapter {chapter_number} is not in the novel index; skipping.", "warning")
      return "skipped"

    source = await self._fetch_source(run, chapter_number)
    if not source.strip():
      await self.log(job_id, f"Skipping chapter {chapter_number}: no source text in the content store.", "warning")
      return "skipped"

    terms = await self._glossary_repo.list_terms(novel_id)
    prompt = build_translation_prompt(run.config.system_prompt, format_glossary_context(glossary_pairs(terms)), source)
    await self.log(job_id, f"Translating chapter {chapter_number}...")
    translated = await self._text_client.generate(model=run.config.model, api_key=run.rotator.current(), prompt=prompt)
    title = derive_translated_title(translated, chapter_number)

    try:
      await self._extract_glossary(run, source, translated)
      await run.content_store.save_chapter(novel_id, chapter_number, content=translated, title=title)
      published = await self._novels_repo.update_chapter_metadata(novel_id, chapter_number, title=title, mark_as_new=True, publish_if_private=True)
    except Exception as exc:  # noqa: BLE001
      await self.log(job_id, f"Post-processing failed for chapter {chapter_number} ({exc}); saving the translation only.", "warning")
      return await self._save_translation_only(run, chapter_number, translated, title)

    if published:
      await self.log(job_id, "Novel status changed from private to ongoing.", "success")
    await self.log(job_id, f"Chapter {chapter_number} translated: {title}", "success")
    return "committed"

  async def _fetch_source(self, run: ChapterRun, chapter_number: int) -> str:
    try:
      stored = await run.content_store.get_chapter(run.novel.novel_id, chapter_number)
    except Exception as exc:  # noqa: BLE001
      logger.warning("Content store read failed for novel=%s chapter=%s: %s", run.novel.novel_id, chapter_number, exc)
      return ""
    return stored.content if stored is not None else ""

  async def _extract_glossary(self, run: ChapterRun, source: str, translated: str) -> None:
    job_id = run.job.job_id
    await self.log(job_id, "Extracting glossary terms...")
    # Extraction always moves to the next key before calling.
    run.rotator.advance()
    prompt = build_extraction_prompt(run.config.extract_prompt, source, translated, run.config.excerpt_chars)
    raw = await self._text_client.generate(model=run.config.model, api_key=run.rotator.current(), prompt=prompt, json_output=True)
    entries = parse_glossary_candidates(raw)
    if not entries:
      await self.log(job_id, "No new glossary terms extracted.")
      return
    written = await self._glossary_repo.upsert_extracted(run.novel.novel_id, entries)
    await self.log(job_id, f"Added or updated {written} glossary terms.", "success")

  async def _save_translation_only(self, run: ChapterRun, chapter_number: int, translated: str, title: str) -> ChapterOutcome:
    job_id = run.job.job_id
    novel_id = run.novel.novel_id
    try:
      await run.content_store.save_chapter(novel_id, chapter_number, content=translated, title=title)
      published = await self._novels_repo.update_chapter_metadata(novel_id, chapter_number, title=title, mark_as_new=True, publish_if_private=True)
    except Exception as exc:  # noqa: BLE001
      await self.log(job_id, f"Saving chapter {chapter_number} failed: {exc}", "error")
      return "skipped"
    if published:
      await self.log(job_id, "Novel status changed from private to ongoing.", "success")
    await self.log(job_id, f"Chapter {chapter_number} saved without glossary update: {title}", "warning")
    return "partial"

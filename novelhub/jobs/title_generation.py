"""Title-generation worker: suggest Arabic titles for existing chapters."""

from __future__ import annotations

import logging

from novelhub.ai.prompts import DEFAULT_TITLE_PROMPT, build_title_prompt
from novelhub.ai.providers.gemini import GeminiTextClient
from novelhub.jobs.models import JobKind, JobRecord, JobStatus
from novelhub.jobs.pipeline import ChapterOutcome, ChapterPipeline, ChapterRun, PipelineConfig
from novelhub.jobs.titles import clean_generated_title
from novelhub.storage.settings_repo import GlobalSettingsRecord

logger = logging.getLogger(__name__)


class TitleGenerationPipeline(ChapterPipeline):
  job_kind: JobKind = "title_generation"

  def build_config(self, job: JobRecord, global_settings: GlobalSettingsRecord) -> PipelineConfig:
    # Title generation borrows the translator keys when it has none of its own.
    keys = job.api_keys or global_settings.title_gen_api_keys or global_settings.translator_api_keys
    return PipelineConfig(
      model=global_settings.title_gen_model or GeminiTextClient.DEFAULT_MODEL,
      system_prompt=global_settings.title_gen_prompt or DEFAULT_TITLE_PROMPT,
      api_keys=tuple(keys),
      rate_limit_delay_seconds=self._settings.title_rate_limit_delay_seconds,
      chapter_delay_seconds=self._settings.title_chapter_delay_seconds,
      max_rate_limit_retries=self._settings.max_rate_limit_retries,
      min_source_chars=self._settings.title_min_source_chars,
      excerpt_chars=self._settings.title_excerpt_chars,
    )

  async def process_chapter(self, run: ChapterRun, chapter_number: int) -> ChapterOutcome:
    job_id = run.job.job_id
    novel_id = run.novel.novel_id

    if not await self.chapter_indexed(run, chapter_number):
      await self.log(job_id, f"Chapter {chapter_number} is not in the novel index; skipping.", "warning")
      return "skipped"

    try:
      stored = await run.content_store.get_chapter(novel_id, chapter_number)
    except Exception as exc:  # noqa: BLE001
      logger.warning("Content store read failed for novel=%s chapter=%s: %s", novel_id, chapter_number, exc)
      stored = None
    source = stored.content if stored is not None else ""
    if len(source.strip()) < run.config.min_source_chars:
      await self.log(job_id, f"Skipping chapter {chapter_number}: content is too short or missing.", "warning")
      return "skipped"

    await self.log(job_id, f"Generating a title for chapter {chapter_number}...")
    raw_title = await self._text_client.generate(model=run.config.model, api_key=run.rotator.current(), prompt=build_title_prompt(run.config.system_prompt, source, run.config.excerpt_chars))
    title = clean_generated_title(raw_title)
    if not title:
      await self.log(job_id, f"The model returned an empty title for chapter {chapter_number}; skipping.", "warning")
      return "skipped"

    try:
      await run.content_store.save_chapter(novel_id, chapter_number, title=title)
      await self._novels_repo.update_chapter_metadata(novel_id, chapter_number, title=title)
    except Exception as exc:  # noqa: BLE001
      await self.log(job_id, f"Saving the title for chapter {chapter_number} failed: {exc}", "error")
      return "skipped"

    await self.log(job_id, f'Set title "{title}" for chapter {chapter_number}.', "success")
    return "committed"

  async def finish_status(self, job_id: str) -> JobStatus:
    # Short or untitled chapters stay queued; pause so a resume retries them.
    current = await self._jobs_repo.get_job(job_id)
    if current is not None and current.target_chapters:
      return "paused"
    return "completed"

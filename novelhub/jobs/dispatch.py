"""Dependency-injected job pipeline dispatch helpers."""

from __future__ import annotations

import logging

from novelhub.ai.providers.gemini import GeminiTextClient
from novelhub.config import Settings
from novelhub.jobs.models import JobKind
from novelhub.jobs.pipeline import ChapterPipeline
from novelhub.jobs.title_generation import TitleGenerationPipeline
from novelhub.jobs.translation import TranslationPipeline
from novelhub.storage.content_store import build_content_store
from novelhub.storage.factory import _get_glossary_repo, _get_jobs_repo, _get_novels_repo, _get_settings_repo
from novelhub.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)


class JobPipelineRegistry:
  """Registry mapping job kinds to pipeline implementations."""

  def __init__(self, pipelines: dict[str, ChapterPipeline]) -> None:
    self._pipelines = pipelines

  def resolve(self, job_kind: JobKind) -> ChapterPipeline:
    """Resolve the pipeline for a job kind."""
    pipeline = self._pipelines.get(job_kind)
    if pipeline is None:
      raise ValueError(f"Unsupported job kind: {job_kind}")
    return pipeline


def build_default_registry(settings: Settings) -> JobPipelineRegistry:
  """Wire both pipelines to the Postgres repositories, Firestore and Gemini."""
  shared = {
    "jobs_repo": _get_jobs_repo(settings),
    "novels_repo": _get_novels_repo(settings),
    "settings_repo": _get_settings_repo(settings),
    "text_client": GeminiTextClient(),
    "content_store_factory": build_content_store,
    "settings": settings,
  }
  return JobPipelineRegistry(
    {
      "translation": TranslationPipeline(glossary_repo=_get_glossary_repo(settings), **shared),
      "title_generation": TitleGenerationPipeline(**shared),
    }
  )


async def process_job(job_id: str, *, registry: JobPipelineRegistry, jobs_repo: JobsRepository) -> None:
  """Run one job through the pipeline registered for its kind."""
  record = await jobs_repo.get_job(job_id)
  if record is None:
    logger.info("Job %s not found; skipping dispatch.", job_id)
    return
  pipeline = registry.resolve(record.job_kind)
  await pipeline.run(job_id)

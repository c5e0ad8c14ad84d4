"""Shared chapter loop for translation and title-generation jobs."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from novelhub.ai.backoff import RateLimitPolicy
from novelhub.ai.errors import ProviderError
from novelhub.ai.providers.gemini import TextGenerationClient
from novelhub.config import Settings
from novelhub.jobs.key_rotation import KeyRotator
from novelhub.jobs.models import JobKind, JobLogEntry, JobRecord, JobStatus, LogSeverity, kind_label
from novelhub.storage.content_store import ChapterContentStore
from novelhub.storage.jobs_repo import JobsRepository
from novelhub.storage.novels_repo import NovelRecord, NovelsRepository
from novelhub.storage.settings_repo import GlobalSettingsRecord, SettingsRepository
from novelhub.utils.ids import generate_run_token, utc_now

logger = logging.getLogger(__name__)

# committed: written and counted; partial: written in degraded form, removed
# from the queue without counting; skipped: left in the queue.
ChapterOutcome = Literal["committed", "partial", "skipped"]


class JobConfigurationError(Exception):
  """Raised when a job cannot start because a collaborator or credential is missing."""


@dataclass(frozen=True)
class PipelineConfig:
  """Settings snapshot taken once when a worker run starts."""

  model: str
  system_prompt: str
  api_keys: tuple[str, ...]
  rate_limit_delay_seconds: float
  chapter_delay_seconds: float
  max_rate_limit_retries: int | None = None
  extract_prompt: str = ""
  min_source_chars: int = 1
  excerpt_chars: int = 15000


@dataclass
class ChapterRun:
  """State shared by every chapter of one worker run."""

  job: JobRecord
  novel: NovelRecord
  config: PipelineConfig
  rotator: KeyRotator
  content_store: ChapterContentStore
  run_token: str


class ChapterPipeline(ABC):
  """Drive one job's target-chapter queue until it drains, pauses or fails."""

  job_kind: JobKind

  def __init__(
    self,
    *,
    jobs_repo: JobsRepository,
    novels_repo: NovelsRepository,
    settings_repo: SettingsRepository,
    text_client: TextGenerationClient,
    content_store_factory: Callable[[], ChapterContentStore | None],
    settings: Settings,
  ) -> None:
    self._jobs_repo = jobs_repo
    self._novels_repo = novels_repo
    self._settings_repo = settings_repo
    self._text_client = text_client
    self._content_store_factory = content_store_factory
    self._settings = settings

  @abstractmethod
  def build_config(self, job: JobRecord, global_settings: GlobalSettingsRecord) -> PipelineConfig:
    """Snapshot the model, prompt, keys and delays for one run."""

  @abstractmethod
  async def process_chapter(self, run: ChapterRun, chapter_number: int) -> ChapterOutcome:
    """Handle one chapter. ProviderError from the main generation call propagates."""

  async def finish_status(self, job_id: str) -> JobStatus:
    """Status to record once the run has walked its whole queue."""
    return "completed"

  async def chapter_indexed(self, run: ChapterRun, chapter_number: int) -> bool:
    """Check the novel's current chapter index, re-read so chapters added mid-run count."""
    novel = await self._novels_repo.get_novel(run.novel.novel_id)
    if novel is None:
      raise JobConfigurationError("The novel no longer exists.")
    run.novel = novel
    return chapter_number in novel.chapter_numbers

  async def run(self, job_id: str) -> None:
    """Claim the job and process it; never raises except on cancellation."""
    run_token = generate_run_token()
    job = await self._jobs_repo.claim_run(job_id, run_token)
    if job is None:
      logger.info("Job %s is not active or no longer exists; nothing to run.", job_id)
      return

    try:
      await self._run_claimed(job, run_token)
    except asyncio.CancelledError:
      # Shutdown: the job stays active with its queue so startup recovery can pick it up.
      logger.warning("Job %s interrupted by shutdown; left active for recovery.", job_id)
      raise
    except JobConfigurationError as exc:
      await self._fail(job_id, run_token, str(exc))
    except Exception as exc:  # noqa: BLE001
      logger.exception("Job %s crashed.", job_id)
      await self._fail(job_id, run_token, f"Job failed unexpectedly: {exc}")

  async def _run_claimed(self, job: JobRecord, run_token: str) -> None:
    content_store = self._content_store_factory()
    if content_store is None:
      raise JobConfigurationError("Server error: the chapter content store is not connected.")

    novel = await self._novels_repo.get_novel(job.novel_id)
    if novel is None:
      raise JobConfigurationError("The novel no longer exists.")

    global_settings = await self._settings_repo.get_or_create()
    config = self.build_config(job, global_settings)
    if not config.api_keys:
      raise JobConfigurationError(f"No API keys are configured for {kind_label(self.job_kind)}.")

    run = ChapterRun(job=job, novel=novel, config=config, rotator=KeyRotator(config.api_keys), content_store=content_store, run_token=run_token)
    policy = RateLimitPolicy(delay_seconds=config.rate_limit_delay_seconds, max_retries=config.max_rate_limit_retries)
    queue = deque(sorted(job.target_chapters))
    logger.info("Job %s (%s) running %d chapters with %d keys.", job.job_id, self.job_kind, len(queue), len(run.rotator))

    while queue:
      if not await self._checkpoint(job.job_id, run_token, next_chapter=queue[0]):
        return

      chapter_number = queue.popleft()
      try:
        outcome = await self.process_chapter(run, chapter_number)
      except ProviderError as exc:
        if exc.rate_limited:
          run.rotator.advance()
          if policy.register(chapter_number):
            await self.log(job.job_id, f"Rate limit hit on chapter {chapter_number}; switching key and retrying.", "warning")
            await asyncio.sleep(policy.delay_seconds)
            queue.appendleft(chapter_number)
            continue
          await self.log(job.job_id, f"Chapter {chapter_number} still rate limited after {policy.attempts(chapter_number) - 1} retries; skipping.", "error")
        else:
          await self.log(job.job_id, f"Generation failed for chapter {chapter_number}: {exc}", "error")
        outcome = "skipped"

      if outcome != "skipped":
        await self._jobs_repo.record_chapter_done(job.job_id, run_token=run_token, chapter_number=chapter_number, count_as_processed=outcome == "committed")

      await asyncio.sleep(config.chapter_delay_seconds)

    final_status = await self.finish_status(job.job_id)
    if not await self._jobs_repo.finish_run(job.job_id, run_token=run_token, status=final_status):
      return
    if final_status == "completed":
      await self.log(job.job_id, f"Finished {kind_label(self.job_kind)} job.", "success")
    else:
      await self.log(job.job_id, f"Reached the end of the queue with chapters left to retry; job is now {final_status}.", "warning")

  async def _checkpoint(self, job_id: str, run_token: str, *, next_chapter: int) -> bool:
    """Re-read the job; return False when this run must stop."""
    current = await self._jobs_repo.get_job(job_id)
    if current is None:
      logger.info("Job %s was deleted; stopping.", job_id)
      return False
    if current.run_token != run_token:
      logger.info("Job %s is owned by another run; stopping.", job_id)
      return False
    if current.status != "active":
      if current.status == "paused":
        await self.log(job_id, f"Job paused at chapter {next_chapter}.", "warning")
      return False
    return True

  async def _fail(self, job_id: str, run_token: str, message: str) -> None:
    await self.log(job_id, message, "error")
    await self._jobs_repo.finish_run(job_id, run_token=run_token, status="failed")

  async def log(self, job_id: str, message: str, severity: LogSeverity = "info") -> None:
    """Write a line to the process log and to the job's user-facing log."""
    level = logging.ERROR if severity == "error" else logging.WARNING if severity == "warning" else logging.INFO
    logger.log(level, "[job %s] %s", job_id, message)
    await self._jobs_repo.append_log(job_id, JobLogEntry(message=message, severity=severity, timestamp=utc_now()))

"""In-process worker pool that consumes job ids from an asyncio queue."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from novelhub.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)

JobHandler = Callable[[str], Awaitable[None]]


class JobWorkerPool:
  """Run submitted jobs on a fixed number of consumer tasks.

  A job id already waiting in the queue is not queued twice. Submitting a job
  while it runs schedules one more run once the current one returns, so a
  resume that lands after the old run passed its last checkpoint is not lost.
  """

  def __init__(self, handler: JobHandler, *, concurrency: int = 4) -> None:
    if concurrency <= 0:
      raise ValueError("Worker pool concurrency must be positive.")
    self._handler = handler
    self._concurrency = concurrency
    self._queue: asyncio.Queue[str] = asyncio.Queue()
    self._queued: set[str] = set()
    self._running: set[str] = set()
    self._rerun: set[str] = set()
    self._workers: list[asyncio.Task[None]] = []

  @property
  def running(self) -> bool:
    return bool(self._workers)

  def start(self) -> None:
    if self._workers:
      return
    self._workers = [asyncio.create_task(self._consume(index), name=f"job-worker-{index}") for index in range(self._concurrency)]
    logger.info("Started %d job workers.", self._concurrency)

  async def stop(self) -> None:
    """Cancel workers; in-flight jobs stay active for recovery on next start."""
    workers, self._workers = self._workers, []
    for worker in workers:
      worker.cancel()
    await asyncio.gather(*workers, return_exceptions=True)
    self._queued.clear()
    self._running.clear()
    self._rerun.clear()
    logger.info("Stopped job workers.")

  def submit(self, job_id: str) -> bool:
    """Queue a job id; return False when a run for it is already waiting."""
    if job_id in self._queued or job_id in self._rerun:
      logger.info("Job %s already scheduled; ignoring duplicate submit.", job_id)
      return False
    if job_id in self._running:
      logger.info("Job %s is running; scheduling another run after it returns.", job_id)
      self._rerun.add(job_id)
      return True
    self._enqueue(job_id)
    return True

  def _enqueue(self, job_id: str) -> None:
    self._queued.add(job_id)
    self._queue.put_nowait(job_id)

  async def join(self) -> None:
    """Wait until every submitted job has been handled."""
    await self._queue.join()

  async def recover(self, jobs_repo: JobsRepository) -> int:
    """Re-queue jobs a previous process left active."""
    active = await jobs_repo.find_active()
    for record in active:
      self.submit(record.job_id)
    if active:
      logger.info("Recovered %d active jobs.", len(active))
    return len(active)

  async def _consume(self, index: int) -> None:
    while True:
      job_id = await self._queue.get()
      self._queued.discard(job_id)
      self._running.add(job_id)
      try:
        await self._handler(job_id)
      except Exception:  # noqa: BLE001
        logger.exception("Worker %d failed while handling job %s.", index, job_id)
      finally:
        self._running.discard(job_id)
        if job_id in self._rerun:
          self._rerun.discard(job_id)
          # Skipped while stopping; startup recovery covers active jobs.
          if self._workers:
            self._enqueue(job_id)
        self._queue.task_done()


_pool: JobWorkerPool | None = None


def get_worker_pool() -> JobWorkerPool | None:
  return _pool


def set_worker_pool(pool: JobWorkerPool | None) -> None:
  global _pool
  _pool = pool

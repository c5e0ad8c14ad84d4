from __future__ import annotations

import logging

from novelhub.jobs.pool import get_worker_pool
from novelhub.services.tasks.interface import TaskEnqueuer

logger = logging.getLogger(__name__)


class InProcessEnqueuer(TaskEnqueuer):
  """Hands jobs to the worker pool running inside this process."""

  async def enqueue(self, job_id: str, payload: dict) -> None:
    pool = get_worker_pool()
    if pool is None or not pool.running:
      raise RuntimeError("Job worker pool is not running.")
    if pool.submit(job_id):
      logger.info("Queued job %s on the in-process worker pool.", job_id)

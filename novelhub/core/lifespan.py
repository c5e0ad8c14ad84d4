import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI

from novelhub.core.database import dispose_engine
from novelhub.core.firebase import initialize_firebase
from novelhub.core.logging import configure_logging
from novelhub.jobs.dispatch import build_default_registry, process_job
from novelhub.jobs.pool import JobWorkerPool, get_worker_pool, set_worker_pool
from novelhub.storage.factory import _get_jobs_repo


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging, Firebase and the job worker pool for the app's lifetime."""
  from novelhub.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("novelhub.core.lifespan")

  try:
    configure_logging(settings)
    initialize_firebase()
  except Exception:
    # Keep serving; jobs log a missing content store on their own.
    logger.warning("Startup initialization failed.", exc_info=True)

  if settings.pg_dsn:
    jobs_repo = _get_jobs_repo(settings)
    registry = build_default_registry(settings)
    pool = JobWorkerPool(partial(process_job, registry=registry, jobs_repo=jobs_repo), concurrency=settings.worker_concurrency)
    set_worker_pool(pool)
    pool.start()
    if settings.recover_active_jobs:
      try:
        await pool.recover(jobs_repo)
      except Exception:
        logger.warning("Active job recovery failed.", exc_info=True)
  else:
    logger.warning("NOVELHUB_PG_DSN is not set; job workers are disabled.")

  logger.info("Startup complete.")
  try:
    yield
  finally:
    pool = get_worker_pool()
    if pool is not None:
      await pool.stop()
      set_worker_pool(None)
    await dispose_engine()

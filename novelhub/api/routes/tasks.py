from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel

from novelhub.config import Settings, get_settings
from novelhub.jobs.pool import get_worker_pool

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = logging.getLogger(__name__)


class TaskPayload(BaseModel):
  job_id: str


def _secret_matches(secret: str, *, authorization: str | None, shared_secret: str | None) -> bool:
  bearer_ok = secrets.compare_digest(authorization or "", f"Bearer {secret}")
  header_ok = secrets.compare_digest(shared_secret or "", secret)
  return bearer_ok or header_ok


def require_task_secret(
  settings: Annotated[Settings, Depends(get_settings)], authorization: Annotated[str | None, Header()] = None, x_novelhub_task_secret: Annotated[str | None, Header()] = None
) -> None:
  """Reject callers without the worker shared secret; an unset secret rejects everyone."""
  if not settings.task_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task authentication is not configured.")
  if not _secret_matches(settings.task_secret, authorization=authorization, shared_secret=x_novelhub_task_secret):
    logger.warning("Task request rejected: bad or missing secret.")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid task secret.")


@router.post("/process-job", status_code=status.HTTP_202_ACCEPTED, dependencies=[Depends(require_task_secret)])
async def process_job_task(payload: TaskPayload) -> dict[str, str]:
  """Queue a job on this process's worker pool."""
  pool = get_worker_pool()
  if pool is None or not pool.running:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Job workers are not running.")

  accepted = pool.submit(payload.job_id)
  logger.info("Task for job %s %s", payload.job_id, "queued" if accepted else "already scheduled")
  return {"status": "accepted" if accepted else "already-scheduled"}

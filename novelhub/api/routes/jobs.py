"""Job control endpoints shared by the translator and the title generator."""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import APIRouter, BackgroundTasks, Depends

from novelhub.api.models import JobDetailResponse, JobSummary, MessageResponse, StartJobRequest, StartJobResponse
from novelhub.core.security import require_admin
from novelhub.services.jobs import JobSupervisor

logger = logging.getLogger(__name__)


def build_job_router(*, prefix: str, tag: str, supervisor_dependency: Callable[..., JobSupervisor]) -> APIRouter:
  """Build list/start/pause/resume/delete/detail routes for one job kind."""
  router = APIRouter(prefix=prefix, tags=[tag], dependencies=[Depends(require_admin)])

  @router.get("/jobs", response_model=list[JobSummary])
  async def list_jobs(supervisor: JobSupervisor = Depends(supervisor_dependency)) -> list[JobSummary]:  # noqa: B008
    """Return the most recently updated jobs."""
    return [JobSummary.from_record(record) for record in await supervisor.list_jobs()]

  @router.post("/start", response_model=StartJobResponse)
  async def start_job(
    payload: StartJobRequest,
    background_tasks: BackgroundTasks,
    supervisor: JobSupervisor = Depends(supervisor_dependency),  # noqa: B008
  ) -> StartJobResponse:
    """Start a job, or resume the job named by ``jobId``."""
    if payload.job_id is not None:
      record = await supervisor.resume(payload.job_id)
      background_tasks.add_task(supervisor.dispatch, record.job_id)
      return StartJobResponse(message="Job resumed", job_id=record.job_id)
    record = await supervisor.start(novel_id=str(payload.novel_id), selector=payload.selector(), api_keys=payload.api_keys)
    background_tasks.add_task(supervisor.dispatch, record.job_id)
    return StartJobResponse(message="Job started", job_id=record.job_id)

  @router.post("/jobs/{job_id}/resume", response_model=StartJobResponse)
  async def resume_job(job_id: str, background_tasks: BackgroundTasks, supervisor: JobSupervisor = Depends(supervisor_dependency)) -> StartJobResponse:  # noqa: B008
    record = await supervisor.resume(job_id)
    background_tasks.add_task(supervisor.dispatch, record.job_id)
    return StartJobResponse(message="Job resumed", job_id=record.job_id)

  @router.post("/jobs/{job_id}/pause", response_model=MessageResponse)
  async def pause_job(job_id: str, supervisor: JobSupervisor = Depends(supervisor_dependency)) -> MessageResponse:  # noqa: B008
    """Request a pause; the worker stops at its next chapter boundary."""
    await supervisor.pause(job_id)
    return MessageResponse(message="Job paused")

  @router.delete("/jobs/{job_id}", response_model=MessageResponse)
  async def delete_job(job_id: str, supervisor: JobSupervisor = Depends(supervisor_dependency)) -> MessageResponse:  # noqa: B008
    await supervisor.delete(job_id)
    return MessageResponse(message="Job deleted")

  @router.get("/jobs/{job_id}", response_model=JobDetailResponse)
  async def get_job(job_id: str, supervisor: JobSupervisor = Depends(supervisor_dependency)) -> JobDetailResponse:  # noqa: B008
    detail = await supervisor.get_detail(job_id)
    return JobDetailResponse.from_detail(detail.record, novel_max_chapter=detail.novel_max_chapter)

  return router

from __future__ import annotations

from typing import Any

from fastapi import Depends

from novelhub.api.deps import get_settings_repo, get_title_supervisor
from novelhub.api.models import TitleGenSettingsModel
from novelhub.api.routes.jobs import build_job_router
from novelhub.services.settings import get_job_settings, update_job_settings
from novelhub.storage.settings_repo import SettingsRepository

router = build_job_router(prefix="/api/title-gen", tag="title-gen", supervisor_dependency=get_title_supervisor)


@router.get("/settings", response_model=TitleGenSettingsModel)
async def get_title_settings(repo: SettingsRepository = Depends(get_settings_repo)) -> dict[str, Any]:  # noqa: B008
  return await get_job_settings(repo, "title_generation")


@router.post("/settings", response_model=TitleGenSettingsModel)
async def update_title_settings(payload: TitleGenSettingsModel, repo: SettingsRepository = Depends(get_settings_repo)) -> dict[str, Any]:  # noqa: B008
  return await update_job_settings(repo, "title_generation", payload.model_dump(by_alias=True, exclude_unset=True))

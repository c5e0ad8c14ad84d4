from __future__ import annotations

from typing import Any

from fastapi import Depends

from novelhub.api.deps import get_settings_repo, get_translation_supervisor
from novelhub.api.models import TranslatorSettingsModel
from novelhub.api.routes.jobs import build_job_router
from novelhub.services.settings import get_job_settings, update_job_settings
from novelhub.storage.settings_repo import SettingsRepository

router = build_job_router(prefix="/api/translator", tag="translator", supervisor_dependency=get_translation_supervisor)


@router.get("/settings", response_model=TranslatorSettingsModel)
async def get_translator_settings(repo: SettingsRepository = Depends(get_settings_repo)) -> dict[str, Any]:  # noqa: B008
  """Return the translator prompt, extraction prompt, model and keys."""
  return await get_job_settings(repo, "translation")


@router.post("/settings", response_model=TranslatorSettingsModel)
async def update_translator_settings(payload: TranslatorSettingsModel, repo: SettingsRepository = Depends(get_settings_repo)) -> dict[str, Any]:  # noqa: B008
  return await update_job_settings(repo, "translation", payload.model_dump(by_alias=True, exclude_unset=True))

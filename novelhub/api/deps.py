"""Shared FastAPI dependencies wiring services to their repositories."""

from __future__ import annotations

from fastapi import Depends

from novelhub.config import Settings, get_settings
from novelhub.jobs.models import JobKind
from novelhub.services.glossary import GlossaryService
from novelhub.services.jobs import JobSupervisor
from novelhub.services.tasks.factory import get_task_enqueuer
from novelhub.storage.factory import _get_glossary_repo, _get_jobs_repo, _get_novels_repo, _get_settings_repo
from novelhub.storage.settings_repo import SettingsRepository


def _build_supervisor(job_kind: JobKind, settings: Settings) -> JobSupervisor:
  return JobSupervisor(
    job_kind=job_kind,
    jobs_repo=_get_jobs_repo(settings),
    novels_repo=_get_novels_repo(settings),
    settings_repo=_get_settings_repo(settings),
    enqueuer=get_task_enqueuer(settings),
  )


def get_translation_supervisor(settings: Settings = Depends(get_settings)) -> JobSupervisor:  # noqa: B008
  return _build_supervisor("translation", settings)


def get_title_supervisor(settings: Settings = Depends(get_settings)) -> JobSupervisor:  # noqa: B008
  return _build_supervisor("title_generation", settings)


def get_settings_repo(settings: Settings = Depends(get_settings)) -> SettingsRepository:  # noqa: B008
  return _get_settings_repo(settings)


def get_glossary_service(settings: Settings = Depends(get_settings)) -> GlossaryService:  # noqa: B008
  return GlossaryService(_get_glossary_repo(settings))

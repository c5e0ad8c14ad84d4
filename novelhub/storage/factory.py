from novelhub.config import Settings
from novelhub.storage.glossary_repo import GlossaryRepository
from novelhub.storage.jobs_repo import JobsRepository
from novelhub.storage.novels_repo import NovelsRepository
from novelhub.storage.postgres_glossary_repo import PostgresGlossaryRepository
from novelhub.storage.postgres_jobs_repo import PostgresJobsRepository
from novelhub.storage.postgres_novels_repo import PostgresNovelsRepository
from novelhub.storage.postgres_settings_repo import PostgresSettingsRepository
from novelhub.storage.settings_repo import SettingsRepository


def _require_pg(settings: Settings) -> None:
  # Enforce Postgres-backed storage for every metadata repository.
  if not settings.pg_dsn:
    raise ValueError("NOVELHUB_PG_DSN must be set to enable Postgres persistence.")


def _get_jobs_repo(settings: Settings) -> JobsRepository:
  """Return the active jobs repository."""
  _require_pg(settings)
  return PostgresJobsRepository()


def _get_novels_repo(settings: Settings) -> NovelsRepository:
  _require_pg(settings)
  return PostgresNovelsRepository()


def _get_glossary_repo(settings: Settings) -> GlossaryRepository:
  _require_pg(settings)
  return PostgresGlossaryRepository()


def _get_settings_repo(settings: Settings) -> SettingsRepository:
  _require_pg(settings)
  return PostgresSettingsRepository()

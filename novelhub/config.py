"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from novelhub.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the novel backend service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  pg_connect_timeout: int
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  task_service_provider: str
  base_url: str | None
  task_secret: str | None
  worker_concurrency: int
  recover_active_jobs: bool
  translation_rate_limit_delay_seconds: float
  translation_chapter_delay_seconds: float
  title_rate_limit_delay_seconds: float
  title_chapter_delay_seconds: float
  title_min_source_chars: int
  title_excerpt_chars: int
  extraction_excerpt_chars: int
  max_rate_limit_retries: int | None


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("http://localhost:3000",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if "*" in origins:
    raise ValueError("NOVELHUB_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_non_negative_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value < 0:
    raise ValueError(f"{name} must be zero or a positive number.")
  return value


def _parse_positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("NOVELHUB_ENV", "development").lower()
  debug = _parse_bool(os.getenv("NOVELHUB_DEBUG"))

  log_max_bytes = _parse_positive_int("NOVELHUB_LOG_MAX_BYTES", "5242880")
  log_backup_count = int(os.getenv("NOVELHUB_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("NOVELHUB_LOG_BACKUP_COUNT must be zero or a positive integer.")

  task_service_provider = os.getenv("NOVELHUB_TASK_SERVICE_PROVIDER", "inprocess").strip().lower()
  if task_service_provider not in {"inprocess", "local-http"}:
    raise ValueError("NOVELHUB_TASK_SERVICE_PROVIDER must be 'inprocess' or 'local-http'.")

  # Unset keeps the rate-limit retry loop unbounded.
  max_rate_limit_retries = _optional_int(os.getenv("NOVELHUB_MAX_RATE_LIMIT_RETRIES"))

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("NOVELHUB_ALLOWED_ORIGINS")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("NOVELHUB_LOG_HTTP_4XX")),
    pg_dsn=os.getenv("NOVELHUB_PG_DSN") or os.getenv("DATABASE_URL"),
    pg_connect_timeout=_parse_positive_int("NOVELHUB_PG_CONNECT_TIMEOUT", "5"),
    firebase_project_id=_optional_str(os.getenv("FIREBASE_PROJECT_ID")),
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    task_service_provider=task_service_provider,
    base_url=_optional_str(os.getenv("NOVELHUB_BASE_URL")),
    task_secret=_optional_str(os.getenv("NOVELHUB_TASK_SECRET")),
    worker_concurrency=_parse_positive_int("NOVELHUB_WORKER_CONCURRENCY", "4"),
    recover_active_jobs=_parse_bool(os.getenv("NOVELHUB_RECOVER_ACTIVE_JOBS"), default=True),
    translation_rate_limit_delay_seconds=_parse_non_negative_float("NOVELHUB_TRANSLATION_RATE_LIMIT_DELAY", "5"),
    translation_chapter_delay_seconds=_parse_non_negative_float("NOVELHUB_TRANSLATION_CHAPTER_DELAY", "2"),
    title_rate_limit_delay_seconds=_parse_non_negative_float("NOVELHUB_TITLE_RATE_LIMIT_DELAY", "3"),
    title_chapter_delay_seconds=_parse_non_negative_float("NOVELHUB_TITLE_CHAPTER_DELAY", "1.5"),
    title_min_source_chars=_parse_positive_int("NOVELHUB_TITLE_MIN_SOURCE_CHARS", "50"),
    title_excerpt_chars=_parse_positive_int("NOVELHUB_TITLE_EXCERPT_CHARS", "15000"),
    extraction_excerpt_chars=_parse_positive_int("NOVELHUB_EXTRACTION_EXCERPT_CHARS", "8000"),
    max_rate_limit_retries=max_rate_limit_retries,
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration."""
  debug = _parse_bool(os.getenv("NOVELHUB_DEBUG"))
  pg_connect_timeout = _parse_positive_int("NOVELHUB_PG_CONNECT_TIMEOUT", "5")
  pg_dsn = os.getenv("NOVELHUB_PG_DSN") or os.getenv("DATABASE_URL")
  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _optional_int(raw: str | None) -> int | None:
  if raw is None or raw.strip() == "":
    return None

  value = int(raw)

  if value <= 0:
    raise ValueError("Optional retry limits must be positive when provided.")

  return value

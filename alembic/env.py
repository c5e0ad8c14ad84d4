import asyncio
import logging
from logging.config import fileConfig
from time import perf_counter

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

config = context.config
if config.config_file_name is not None:
  fileConfig(config.config_file_name)

# Registers every table on Base.metadata.
import novelhub.schema.sql  # noqa: E402, F401
from novelhub.core.database import DATABASE_URL, Base  # noqa: E402

logger = logging.getLogger("alembic.runtime.migration")


class _RevisionTimer:
  """Reports how long each revision took to apply."""

  def __init__(self) -> None:
    self.started = perf_counter()

  def __call__(self, *, ctx: object, step: object, heads: set[str], run_args: dict[str, object]) -> None:
    now = perf_counter()
    logger.info("Applied %s in %.3fs", getattr(step, "up_revision_id", None) or "?", now - self.started)
    self.started = now


def _require_url() -> str:
  if not DATABASE_URL:
    raise RuntimeError("Set NOVELHUB_PG_DSN (or DATABASE_URL) before running migrations.")
  return DATABASE_URL


def _configure(**kwargs: object) -> None:
  context.configure(target_metadata=Base.metadata, compare_type=True, compare_server_default=True, on_version_apply=_RevisionTimer(), **kwargs)


def run_migrations_offline() -> None:
  _configure(url=_require_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
  with context.begin_transaction():
    context.run_migrations()


def _migrate(connection: Connection) -> None:
  _configure(connection=connection)
  current = context.get_context().get_current_revision() or "base"
  logger.info("Migrating novelhub schema from %s", current)
  with context.begin_transaction():
    context.run_migrations()


async def run_migrations_online() -> None:
  section = dict(config.get_section(config.config_ini_section) or {})
  section["sqlalchemy.url"] = _require_url()
  engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
  try:
    async with engine.connect() as connection:
      await connection.run_sync(_migrate)
  finally:
    await engine.dispose()


if context.is_offline_mode():
  run_migrations_offline()
else:
  asyncio.run(run_migrations_online())

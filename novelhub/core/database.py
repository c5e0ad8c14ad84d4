"""Async SQLAlchemy engine and session factory, created on first use."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from novelhub.config import get_database_settings

_ASYNC_DRIVER_PREFIXES = {"postgresql://": "postgresql+asyncpg://", "postgres://": "postgresql+asyncpg://"}


class Base(DeclarativeBase):
  pass


def _database_url() -> str | None:
  """Return the configured DSN rewritten for the asyncpg driver."""
  dsn = get_database_settings().pg_dsn
  if not dsn:
    return None
  for prefix, replacement in _ASYNC_DRIVER_PREFIXES.items():
    if dsn.startswith(prefix):
      return replacement + dsn[len(prefix) :]
  return dsn


DATABASE_URL = _database_url()

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_db_engine() -> AsyncEngine | None:
  global _engine
  if _engine is None:
    url = _database_url()
    if url is None:
      return None
    settings = get_database_settings()
    _engine = create_async_engine(url, echo=settings.debug, pool_pre_ping=True, connect_args={"timeout": settings.pg_connect_timeout})
  return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession] | None:
  """Return the shared session factory, or None when no DSN is configured."""
  global _session_factory
  if _session_factory is None:
    engine = get_db_engine()
    if engine is not None:
      _session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
  return _session_factory


async def dispose_engine() -> None:
  """Close pooled connections; the next call to get_db_engine starts a new pool."""
  global _engine, _session_factory
  if _engine is not None:
    await _engine.dispose()
  _engine = None
  _session_factory = None

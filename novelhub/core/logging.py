"""Process-wide logging: stdout plus a size-rotated file under ``logs/``."""

from __future__ import annotations

import logging
import logging.handlers
import sys
import time
import traceback
from pathlib import Path
from types import TracebackType

from novelhub.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_TRACEBACK_TAIL = 5
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")
_QUIET_LOGGERS = ("google", "httpx", "httpcore", "urllib3")

_log_path: Path | None = None


class TruncatedFormatter(logging.Formatter):
  """Keeps the exception line and the innermost frames of a traceback."""

  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:  # noqa: N802
    lines = traceback.format_exception(*ei)
    if len(lines) <= _TRACEBACK_TAIL + 1:
      return "".join(lines)
    return "".join([lines[0], "    ...\n", *lines[-_TRACEBACK_TAIL:]])


def _backup_name(name: str) -> str:
  # novelhub_x.log.1 -> novelhub_x.log-1
  stem, _, suffix = name.rpartition(".")
  return f"{stem}-{suffix}" if stem and suffix.isdigit() else name


def log_directory() -> Path:
  return Path(__file__).resolve().parents[2] / "logs"


def _file_handler(settings: Settings) -> tuple[logging.Handler, Path]:
  directory = log_directory()
  path = directory / time.strftime("novelhub_%Y%m%d_%H%M%S.log")
  try:
    directory.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  except OSError as exc:
    raise RuntimeError(f"Cannot open log file {path}: {exc}") from exc
  handler.namer = _backup_name
  handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
  return handler, path


def configure_logging(settings: Settings) -> Path:
  """Install handlers on the root and uvicorn loggers once; later calls are no-ops."""
  global _log_path
  if _log_path is not None:
    return _log_path

  console = logging.StreamHandler(sys.stdout)
  console.setFormatter(TruncatedFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
  file_handler, path = _file_handler(settings)
  handlers: list[logging.Handler] = [console, file_handler]

  logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO, handlers=handlers, force=True)
  for name in _ROUTED_LOGGERS:
    routed = logging.getLogger(name)
    routed.handlers = list(handlers)
    routed.propagate = False
  for name in _QUIET_LOGGERS:
    logging.getLogger(name).setLevel(logging.WARNING)

  _log_path = path
  logging.getLogger(__name__).info("Logging to %s", path)
  return path

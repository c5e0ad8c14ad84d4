"""JSON error responses for the API.

Every error body has a ``detail`` field and, when the request went through
``RequestLoggingMiddleware``, a ``requestId``. Server-side failures never echo
their internals to the client, and validation errors drop the submitted values
since those may contain API keys.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from novelhub.jobs.models import JobStateError

logger = logging.getLogger("novelhub.core.exceptions")

_GENERIC_SERVER_ERROR = "Internal Server Error"


def _json_safe(value: Any) -> Any:
  if value is None or isinstance(value, bool | int | float | str):
    return value
  if isinstance(value, Mapping):
    return {str(key): _json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set):
    return [_json_safe(item) for item in value]
  if isinstance(value, BaseException):
    return f"{type(value).__name__}: {value}" if str(value) else type(value).__name__
  return str(value)


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Strip ``input`` (top level and inside ``ctx``) from pydantic error entries."""
  cleaned: list[dict[str, Any]] = []
  for error in errors:
    entry = {key: value for key, value in error.items() if key != "input"}
    ctx = entry.get("ctx")
    if isinstance(ctx, dict):
      entry["ctx"] = {key: value for key, value in ctx.items() if key != "input"}
    cleaned.append(_json_safe(entry))
  return cleaned


def _respond(request: Request, status_code: int, detail: Any, *, headers: Mapping[str, str] | None = None) -> JSONResponse:
  body: dict[str, Any] = {"detail": detail}
  request_id = getattr(request.state, "request_id", None)
  if request_id:
    body["requestId"] = request_id
  return JSONResponse(status_code=status_code, content=body, headers=dict(headers) if headers else None)


def _request_id(request: Request) -> str | None:
  return getattr(request.state, "request_id", None)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  logger.error("Unhandled %s on %s %s request_id=%s", type(exc).__name__, request.method, request.url.path, _request_id(request), exc_info=exc)
  return _respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, _GENERIC_SERVER_ERROR)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  errors = _sanitize_validation_errors(list(exc.errors()))
  logger.warning("Invalid request on %s %s request_id=%s errors=%s", request.method, request.url.path, _request_id(request), errors)
  return _respond(request, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Pass 4xx details through; replace 5xx details with a generic message."""
  if exc.status_code >= 500:
    logger.error("HTTP %s on %s request_id=%s detail=%s", exc.status_code, request.url.path, _request_id(request), exc.detail)
    return _respond(request, exc.status_code, _GENERIC_SERVER_ERROR)

  from novelhub.config import get_settings

  if get_settings().log_http_4xx:
    logger.warning("HTTP %s on %s request_id=%s detail=%s", exc.status_code, request.url.path, _request_id(request), exc.detail)
  return _respond(request, exc.status_code, exc.detail, headers=exc.headers)


async def job_state_exception_handler(request: Request, exc: JobStateError) -> JSONResponse:
  logger.info("Refused job status change %s -> %s on %s", exc.current, exc.target, request.url.path)
  return _respond(request, status.HTTP_409_CONFLICT, str(exc))

"""ASGI middleware that tags requests with an id and logs their outcome."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("novelhub.core.middleware")

REQUEST_ID_HEADER = "x-request-id"
_MAX_REQUEST_ID_LENGTH = 128


def _request_id(scope: Scope) -> str:
  incoming = Headers(scope=scope).get(REQUEST_ID_HEADER, "").strip()
  if incoming and len(incoming) <= _MAX_REQUEST_ID_LENGTH and incoming.isprintable():
    return incoming
  return uuid.uuid4().hex


class RequestLoggingMiddleware:
  """Log method, path, status and latency per HTTP request. Bodies are never logged."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    request_id = _request_id(scope)
    # Error handlers read it back from request.state.
    scope.setdefault("state", {})["request_id"] = request_id
    method = scope.get("method", "-")
    path = scope.get("path", "")
    started = time.perf_counter()
    status_code = 0

    async def send_with_id(message: dict[str, Any]) -> None:
      nonlocal status_code
      if message["type"] == "http.response.start":
        status_code = message["status"]
        headers = MutableHeaders(scope=message)
        headers.setdefault(REQUEST_ID_HEADER, request_id)
      await send(message)

    try:
      await self.app(scope, receive, send_with_id)
    finally:
      elapsed_ms = (time.perf_counter() - started) * 1000
      logger.info("%s %s -> %s in %.1fms request_id=%s", method, path, status_code or 500, elapsed_ms, request_id)

from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx

from novelhub.config import Settings
from novelhub.services.tasks.interface import TaskEnqueuer

logger = logging.getLogger(__name__)

TASK_PATH = "/internal/tasks/process-job"
_LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "0.0.0.0"})


class LocalHttpEnqueuer(TaskEnqueuer):
  """Hands jobs to a worker process through the authenticated internal task route.

  Loopback base URLs are served in-process over ``httpx.ASGITransport`` so a
  single dev server can dispatch to itself without a second listener.
  """

  def __init__(self, settings: Settings, *, timeout: float = 30.0) -> None:
    self.settings = settings
    self.timeout = timeout

  def _client_for(self, base_url: str) -> httpx.AsyncClient:
    host = (urlparse(base_url).hostname or "").lower()
    if host in _LOOPBACK_HOSTS:
      from novelhub.main import app

      return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=base_url, trust_env=False)
    # Proxy variables from the environment do not apply to worker traffic.
    return httpx.AsyncClient(trust_env=False)

  def _target(self) -> tuple[str, dict[str, str]]:
    base_url = self.settings.base_url
    if not base_url:
      raise RuntimeError("NOVELHUB_BASE_URL must be set to dispatch jobs over HTTP.")
    secret = self.settings.task_secret
    if not secret:
      raise RuntimeError("NOVELHUB_TASK_SECRET must be set to dispatch jobs over HTTP.")
    return base_url.rstrip("/") + TASK_PATH, {"authorization": f"Bearer {secret}"}

  async def enqueue(self, job_id: str, payload: dict) -> None:
    url, headers = self._target()
    body = {"job_id": job_id, **payload}
    async with self._client_for(self.settings.base_url) as client:
      try:
        response = await client.post(url, json=body, headers=headers, timeout=self.timeout)
        response.raise_for_status()
      except httpx.HTTPStatusError as exc:
        logger.error("Worker rejected job %s with HTTP %s: %s", job_id, exc.response.status_code, exc.response.text)
        raise
      except httpx.RequestError as exc:
        logger.error("Worker unreachable for job %s at %s: %s", job_id, url, exc)
        raise
    logger.info("Job %s handed to worker at %s", job_id, url)

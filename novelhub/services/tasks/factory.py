from __future__ import annotations

from novelhub.config import Settings
from novelhub.services.tasks.inprocess import InProcessEnqueuer
from novelhub.services.tasks.interface import TaskEnqueuer
from novelhub.services.tasks.local import LocalHttpEnqueuer


def get_task_enqueuer(settings: Settings) -> TaskEnqueuer:
  """Factory to get the configured task enqueuer."""
  if settings.task_service_provider == "local-http":
    return LocalHttpEnqueuer(settings)
  return InProcessEnqueuer()

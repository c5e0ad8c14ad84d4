from __future__ import annotations

from typing import Protocol


class TaskEnqueuer(Protocol):
  """Something that gets a stored job picked up by a worker."""

  async def enqueue(self, job_id: str, payload: dict) -> None:
    """Schedule ``job_id``; raise when the hand-off could not be made."""
    ...

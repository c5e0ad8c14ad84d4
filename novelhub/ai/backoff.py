"""Rate-limit detection and the flat retry policy used by chapter jobs."""

from __future__ import annotations

from dataclasses import dataclass

_RATE_LIMIT_MARKERS: tuple[str, ...] = ("429", "quota", "too many requests", "resource exhausted", "resource_exhausted")


def is_rate_limit_error(exc: BaseException) -> bool:
  """Return True when an exception looks like a provider quota or 429 error."""
  code = getattr(exc, "code", None)
  if code == 429:
    return True
  message = str(exc).lower()
  return any(marker in message for marker in _RATE_LIMIT_MARKERS)


@dataclass
class RateLimitPolicy:
  """Flat-delay retry allowance for one job run.

  ``max_retries`` of None keeps retrying a rate-limited chapter forever.
  """

  delay_seconds: float
  max_retries: int | None = None

  def __post_init__(self) -> None:
    self._attempts: dict[int, int] = {}

  def register(self, chapter_number: int) -> bool:
    """Count one rate-limit hit; return False when the chapter is out of retries."""
    attempts = self._attempts.get(chapter_number, 0) + 1
    self._attempts[chapter_number] = attempts
    if self.max_retries is None:
      return True
    return attempts <= self.max_retries

  def attempts(self, chapter_number: int) -> int:
    return self._attempts.get(chapter_number, 0)

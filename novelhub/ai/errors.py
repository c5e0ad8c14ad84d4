"""Error types raised by generative text providers."""

from __future__ import annotations


class ProviderError(RuntimeError):
  """A generation call failed; ``rate_limited`` marks quota/429 failures."""

  def __init__(self, message: str, *, rate_limited: bool = False) -> None:
    super().__init__(message)
    self.rate_limited = rate_limited

"""Round-robin selection over provider credentials."""

from __future__ import annotations

from collections.abc import Sequence


class KeyRotator:
  """Cycle through API keys, advancing when the provider pushes back.

  The cursor lives only in memory, so every worker run starts again at the
  first key.
  """

  def __init__(self, keys: Sequence[str]) -> None:
    if not keys:
      raise ValueError("KeyRotator needs at least one API key.")
    self._keys = tuple(keys)
    self._cursor = 0

  @property
  def cursor(self) -> int:
    return self._cursor

  def __len__(self) -> int:
    return len(self._keys)

  def current(self) -> str:
    return self._keys[self._cursor % len(self._keys)]

  def advance(self) -> str:
    """Move to the next key and return it."""
    self._cursor += 1
    return self.current()

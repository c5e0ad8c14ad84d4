"""Read ``NOVELHUB_*`` style settings from a local ``.env`` file."""

from __future__ import annotations

import os
from pathlib import Path

_QUOTES = ("'", '"')


def default_env_path() -> Path:
  return Path(__file__).resolve().parents[2] / ".env"


def _parse_line(raw_line: str) -> tuple[str, str] | None:
  line = raw_line.strip()
  if line.startswith("export "):
    line = line.removeprefix("export ").lstrip()
  if not line or line.startswith("#") or "=" not in line:
    return None

  name, _, value = line.partition("=")
  name = name.strip()
  value = value.strip()
  if not name:
    return None
  if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
    value = value[1:-1]
  return name, value


def load_env_file(path: Path, *, override: bool = False) -> dict[str, str]:
  """Export ``KEY=value`` lines into ``os.environ`` and return what was applied.

  Existing process variables win unless ``override`` is set; a missing file is
  not an error.
  """
  if not path.is_file():
    return {}

  applied: dict[str, str] = {}
  for raw_line in path.read_text(encoding="utf-8").splitlines():
    parsed = _parse_line(raw_line)
    if parsed is None:
      continue
    name, value = parsed
    if name in os.environ and not override:
      continue
    os.environ[name] = value
    applied[name] = value
  return applied

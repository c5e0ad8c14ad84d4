"""Domain models for background chapter jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

JobStatus = Literal["active", "paused", "completed", "failed"]
JobKind = Literal["translation", "title_generation"]
LogSeverity = Literal["info", "success", "warning", "error"]

# Status moves a running job can make on its own or through a pause request.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
  "active": frozenset({"paused", "completed", "failed"}),
  "paused": frozenset({"active"}),
  "completed": frozenset(),
  "failed": frozenset(),
}

# Terminal jobs only return to active through an explicit resume request.
RESUMABLE_STATUSES: frozenset[str] = frozenset({"paused", "failed", "completed"})


class JobStateError(Exception):
  """Raised when a requested status change is not allowed."""

  def __init__(self, current: str, target: str) -> None:
    super().__init__(f"Cannot move job from '{current}' to '{target}'.")
    self.current = current
    self.target = target


@dataclass(frozen=True)
class JobLogEntry:
  message: str
  severity: LogSeverity
  timestamp: datetime


@dataclass
class JobRecord:
  """Persistent state of one translation or title-generation run."""

  job_id: str
  job_kind: JobKind
  novel_id: str
  status: JobStatus
  novel_title: str | None = None
  cover: str | None = None
  target_chapters: list[int] = field(default_factory=list)
  processed_count: int = 0
  total_to_process: int = 0
  current_chapter: int = 0
  logs: list[JobLogEntry] = field(default_factory=list)
  api_keys: list[str] | None = None
  run_token: str | None = None
  started_at: datetime | None = None
  updated_at: datetime | None = None


@dataclass(frozen=True)
class ChapterSelector:
  """Which chapters of a work a new job should target.

  Exactly one of ``all_chapters``, ``numbers`` or ``resume_from`` drives the
  selection; ``resume_from`` wins when several are given.
  """

  all_chapters: bool = False
  numbers: tuple[int, ...] = ()
  resume_from: int | None = None

  def resolve(self, available: list[int]) -> list[int]:
    """Return the ordered, de-duplicated target queue for a work."""
    if self.resume_from is not None:
      selected = [number for number in available if number >= self.resume_from]
    elif self.all_chapters:
      selected = list(available)
    else:
      selected = list(self.numbers)
    return sorted(dict.fromkeys(selected))


def ensure_transition(current: str, target: str) -> None:
  """Raise JobStateError unless ``current -> target`` is a legal move."""
  if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
    raise JobStateError(current, target)


def ensure_resumable(current: str) -> None:
  if current not in RESUMABLE_STATUSES:
    raise JobStateError(current, "active")


def kind_label(job_kind: JobKind) -> str:
  return "translation" if job_kind == "translation" else "title generation"

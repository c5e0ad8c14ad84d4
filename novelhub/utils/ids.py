"""Identifier utilities."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime


def generate_job_id() -> str:
  """Return a new job identifier."""
  return str(uuid.uuid4())


def generate_run_token() -> str:
  """Return a token identifying one worker run of a job."""
  return uuid.uuid4().hex


def utc_now() -> datetime:
  return datetime.now(UTC)

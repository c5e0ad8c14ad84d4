"""Per-job-type views over the global settings row."""

from __future__ import annotations

from typing import Any

from novelhub.ai.prompts import DEFAULT_EXTRACT_PROMPT
from novelhub.jobs.models import JobKind
from novelhub.storage.settings_repo import GlobalSettingsRecord, SettingsRepository

# Public field name -> global settings column, per job type.
_FIELD_MAP: dict[JobKind, dict[str, str]] = {
  "translation": {
    "customPrompt": "custom_prompt",
    "translatorExtractPrompt": "translator_extract_prompt",
    "translatorModel": "translator_model",
    "translatorApiKeys": "translator_api_keys",
  },
  "title_generation": {
    "prompt": "title_gen_prompt",
    "model": "title_gen_model",
    "apiKeys": "title_gen_api_keys",
  },
}


def _present(job_kind: JobKind, record: GlobalSettingsRecord) -> dict[str, Any]:
  values = {public: getattr(record, column) for public, column in _FIELD_MAP[job_kind].items()}
  if job_kind == "translation" and not values["translatorExtractPrompt"]:
    values["translatorExtractPrompt"] = DEFAULT_EXTRACT_PROMPT
  return values


async def get_job_settings(repo: SettingsRepository, job_kind: JobKind) -> dict[str, Any]:
  return _present(job_kind, await repo.get_or_create())


async def update_job_settings(repo: SettingsRepository, job_kind: JobKind, changes: dict[str, Any]) -> dict[str, Any]:
  """Apply the provided public fields; fields left out keep their stored values."""
  field_map = _FIELD_MAP[job_kind]
  columns = {field_map[public]: value for public, value in changes.items() if public in field_map and value is not None}
  if not columns:
    return await get_job_settings(repo, job_kind)
  return _present(job_kind, await repo.update(columns))

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException

from novelhub.jobs.models import ChapterSelector, JobStateError
from novelhub.services.jobs import JobSupervisor
from novelhub.storage.novels_repo import NovelRecord


@pytest.fixture
def supervisor_for(jobs_repo, novels_repo, settings_repo):
  novels_repo.add(NovelRecord(novel_id="novel-1", title="Lord of Mysteries", cover="lom.png", status="ongoing", chapter_numbers=[1, 2, 3, 4, 5]))

  def _build(job_kind="translation", enqueuer=None) -> JobSupervisor:
    return JobSupervisor(job_kind=job_kind, jobs_repo=jobs_repo, novels_repo=novels_repo, settings_repo=settings_repo, enqueuer=enqueuer or AsyncMock())

  return _build


@pytest.mark.anyio
async def test_start_resolves_resume_from_and_snapshots_override_keys(supervisor_for, jobs_repo) -> None:
  supervisor = supervisor_for()

  record = await supervisor.start(novel_id="novel-1", selector=ChapterSelector(resume_from=3), api_keys=["override", "  "])

  stored = await jobs_repo.get_job(record.job_id)
  assert stored.status == "active"
  assert stored.target_chapters == [3, 4, 5]
  assert stored.total_to_process == 3
  assert stored.novel_title == "Lord of Mysteries"
  assert stored.cover == "lom.png"
  assert stored.api_keys == ["override"]
  assert jobs_repo.messages(record.job_id) == ["Started translation job for 3 chapters using 1 keys."]


@pytest.mark.anyio
async def test_start_with_explicit_chapters_deduplicates_and_sorts(supervisor_for) -> None:
  record = await supervisor_for().start(novel_id="novel-1", selector=ChapterSelector(numbers=(4, 2, 4)))
  assert record.target_chapters == [2, 4]


@pytest.mark.anyio
async def test_start_unknown_novel_is_404(supervisor_for) -> None:
  with pytest.raises(HTTPException) as excinfo:
    await supervisor_for().start(novel_id="missing", selector=ChapterSelector(all_chapters=True))
  assert excinfo.value.status_code == 404


@pytest.mark.anyio
async def test_translation_start_without_any_keys_is_400(supervisor_for, settings_repo) -> None:
  await settings_repo.update({"translator_api_keys": []})
  with pytest.raises(HTTPException) as excinfo:
    await supervisor_for().start(novel_id="novel-1", selector=ChapterSelector(all_chapters=True))
  assert excinfo.value.status_code == 400


@pytest.mark.anyio
async def test_title_start_keeps_key_resolution_for_the_worker(supervisor_for, settings_repo) -> None:
  await settings_repo.update({"translator_api_keys": []})
  record = await supervisor_for("title_generation").start(novel_id="novel-1", selector=ChapterSelector(all_chapters=True))
  assert record.api_keys is None
  assert record.job_kind == "title_generation"


@pytest.mark.anyio
async def test_pause_then_resume(supervisor_for, make_job, jobs_repo) -> None:
  supervisor = supervisor_for()
  await make_job("translation", "novel-1", [1, 2])

  paused = await supervisor.pause("job-1")
  assert paused.status == "paused"
  with pytest.raises(JobStateError):
    await supervisor.pause("job-1")

  resumed = await supervisor.resume("job-1")
  assert resumed.status == "active"
  assert jobs_repo.messages("job-1")[-1] == "Job resumed."
  with pytest.raises(JobStateError):
    await supervisor.resume("job-1")


@pytest.mark.anyio
async def test_finished_jobs_can_be_resumed_but_not_paused(supervisor_for, make_job) -> None:
  supervisor = supervisor_for()
  await make_job("translation", "novel-1", [2], status="failed")

  with pytest.raises(JobStateError):
    await supervisor.pause("job-1")
  assert (await supervisor.resume("job-1")).status == "active"


@pytest.mark.anyio
async def test_jobs_of_another_kind_are_not_visible(supervisor_for, make_job) -> None:
  await make_job("title_generation", "novel-1", [1])
  supervisor = supervisor_for("translation")

  with pytest.raises(HTTPException) as excinfo:
    await supervisor.get_detail("job-1")
  assert excinfo.value.status_code == 404
  assert await supervisor.list_jobs() == []


@pytest.mark.anyio
async def test_translation_detail_reports_novel_max_chapter(supervisor_for, make_job) -> None:
  await make_job("translation", "novel-1", [1])
  detail = await supervisor_for().get_detail("job-1")
  assert detail.novel_max_chapter == 5

  await make_job("title_generation", "novel-1", [1], job_id="job-2")
  title_detail = await supervisor_for("title_generation").get_detail("job-2")
  assert title_detail.novel_max_chapter is None


@pytest.mark.anyio
async def test_delete(supervisor_for, make_job, jobs_repo) -> None:
  supervisor = supervisor_for()
  await make_job("translation", "novel-1", [1])

  await supervisor.delete("job-1")
  assert await jobs_repo.get_job("job-1") is None
  with pytest.raises(HTTPException) as excinfo:
    await supervisor.delete("job-1")
  assert excinfo.value.status_code == 404


@pytest.mark.anyio
async def test_dispatch_passes_job_to_enqueuer(supervisor_for, make_job) -> None:
  enqueuer = AsyncMock()
  await make_job("translation", "novel-1", [1])

  await supervisor_for(enqueuer=enqueuer).dispatch("job-1")

  enqueuer.enqueue.assert_awaited_once_with("job-1", {})


@pytest.mark.anyio
async def test_dispatch_failure_marks_job_failed(supervisor_for, make_job, jobs_repo) -> None:
  enqueuer = AsyncMock()
  enqueuer.enqueue.side_effect = RuntimeError("Job worker pool is not running.")
  await make_job("translation", "novel-1", [1])

  await supervisor_for(enqueuer=enqueuer).dispatch("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "failed"
  assert jobs_repo.messages("job-1")[-1] == "Could not schedule the job: Job worker pool is not running."

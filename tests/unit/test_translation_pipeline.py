from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from novelhub.ai.errors import ProviderError
from novelhub.jobs.models import ChapterSelector
from novelhub.jobs.translation import TranslationPipeline
from novelhub.services.jobs import JobSupervisor
from novelhub.storage.novels_repo import NovelRecord

GLOSSARY_JSON = '```json\n[{"category": "character", "name": "Fang Yuan", "translation": "فانغ يوان", "description": "main character"}]\n```'


def _chapter_of(prompt: str) -> int:
  """Source texts start with ``source <n>`` so prompts reveal their chapter."""
  return int(prompt.split("source ", 1)[1].split()[0])


@pytest.fixture
def seed_novel(novels_repo, content_store):
  def _seed(chapters: dict[int, str], *, status: str = "private") -> NovelRecord:
    novel = NovelRecord(novel_id="novel-1", title="Reverend Insanity", cover="cover.png", status=status, chapter_numbers=sorted(chapters))
    novels_repo.add(novel)
    for number, text in chapters.items():
      content_store.put("novel-1", number, text)
    return novel

  return _seed


@pytest.fixture
def build_pipeline(jobs_repo, novels_repo, glossary_repo, settings_repo, content_store, settings):
  def _build(text_client, *, store_available: bool = True, **overrides) -> TranslationPipeline:
    return TranslationPipeline(
      glossary_repo=glossary_repo,
      jobs_repo=jobs_repo,
      novels_repo=novels_repo,
      settings_repo=settings_repo,
      text_client=text_client,
      content_store_factory=lambda: content_store if store_available else None,
      settings=overrides.get("settings", settings),
    )

  return _build


@pytest.mark.anyio
async def test_all_chapters_run_commits_and_leaves_empty_chapter_queued(seed_novel, build_pipeline, scripted_client, jobs_repo, novels_repo, glossary_repo, settings_repo, content_store) -> None:
  """Chapters with text are committed; an empty chapter stays queued and the job still completes."""
  seed_novel({1: "source 1 The sect gathered.", 2: "", 3: "source 3 Fang Yuan smiled."})
  snapshots: list[tuple[int, list[int]]] = []

  supervisor = JobSupervisor(job_kind="translation", jobs_repo=jobs_repo, novels_repo=novels_repo, settings_repo=settings_repo, enqueuer=AsyncMock())
  created = await supervisor.start(novel_id="novel-1", selector=ChapterSelector(all_chapters=True))
  assert created.target_chapters == [1, 2, 3]
  assert created.total_to_process == 3
  assert created.api_keys == ["k1", "k2"]

  async def handler(call) -> str:
    if call.json_output:
      return GLOSSARY_JSON
    chapter = _chapter_of(call.prompt)
    record = await jobs_repo.get_job(created.job_id)
    snapshots.append((record.processed_count, list(record.target_chapters)))
    return f"Chapter {chapter}: عنوان {chapter}\nنص مترجم"

  client = scripted_client(handler)
  await build_pipeline(client).run(created.job_id)

  # Chapter 3 starts after chapter 1 was committed and chapter 2 was skipped.
  assert snapshots == [(0, [1, 2, 3]), (1, [2, 3])]
  final = await jobs_repo.get_job(created.job_id)
  assert final.status == "completed"
  assert final.processed_count == 2
  assert final.target_chapters == [2]
  assert final.current_chapter == 3
  assert novels_repo.chapter_titles == {("novel-1", 1): "عنوان 1", ("novel-1", 3): "عنوان 3"}
  assert content_store.chapters[("novel-1", 1)].content.startswith("Chapter 1:")
  assert content_store.chapters[("novel-1", 2)].content == ""
  assert (await novels_repo.get_novel("novel-1")).status == "ongoing"

  terms = await glossary_repo.list_terms("novel-1")
  assert [(term.term, term.category, term.auto_generated) for term in terms] == [("Fang Yuan", "characters", True)]

  # Translate on the current key; extraction always moves to the next one first.
  assert [call.api_key for call in client.calls] == ["k1", "k2", "k2", "k1"]
  messages = jobs_repo.messages(created.job_id)
  assert "Skipping chapter 2: no source text in the content store." in messages
  assert "Novel status changed from private to ongoing." in messages
  assert messages[-1] == "Finished translation job."


@pytest.mark.anyio
async def test_wrong_shape_extraction_still_commits_translation(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo, glossary_repo, content_store) -> None:
  seed_novel({1: "source 1 text", 2: "source 2 text"})
  await make_job("translation", "novel-1", [1, 2])

  async def handler(call) -> str:
    if call.json_output:
      return '["not", "an", "object"]'
    return "نص بدون عنوان"

  await build_pipeline(scripted_client(handler)).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "completed"
  assert final.processed_count == 2
  assert final.target_chapters == []
  assert await glossary_repo.list_terms("novel-1") == []
  assert content_store.chapters[("novel-1", 1)].content == "نص بدون عنوان"
  assert content_store.chapters[("novel-1", 1)].title == "الفصل 1"
  assert jobs_repo.messages("job-1").count("No new glossary terms extracted.") == 2


@pytest.mark.anyio
async def test_extraction_failure_falls_back_to_saving_translation(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo, novels_repo, content_store) -> None:
  """A failed glossary pass keeps the translation and drops the chapter without counting it."""
  seed_novel({1: "source 1 text"})
  await make_job("translation", "novel-1", [1])

  async def handler(call) -> str:
    if call.json_output:
      raise ProviderError("model overloaded")
    return "Chapter 1: البداية\nنص"

  await build_pipeline(scripted_client(handler)).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "completed"
  assert final.processed_count == 0
  assert final.target_chapters == []
  assert content_store.chapters[("novel-1", 1)].title == "البداية"
  assert novels_repo.chapter_titles[("novel-1", 1)] == "البداية"
  assert ("novel-1", 1) in novels_repo.marked_new
  # The degraded save still publishes a private novel.
  assert (await novels_repo.get_novel("novel-1")).status == "ongoing"
  messages = jobs_repo.messages("job-1")
  assert "Novel status changed from private to ongoing." in messages
  assert any("saved without glossary update" in message for message in messages)


@pytest.mark.anyio
async def test_failed_fallback_save_leaves_chapter_queued(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo, content_store) -> None:
  seed_novel({1: "source 1 text"})
  await make_job("translation", "novel-1", [1])
  content_store.fail_saves = True

  async def handler(call) -> str:
    return "[]" if call.json_output else "نص"

  await build_pipeline(scripted_client(handler)).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "completed"
  assert final.target_chapters == [1]
  assert any(message.startswith("Saving chapter 1 failed") for message in jobs_repo.messages("job-1"))


@pytest.mark.anyio
async def test_permanent_provider_error_skips_chapter_and_continues(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo) -> None:
  seed_novel({1: "source 1 text", 2: "source 2 text"})
  await make_job("translation", "novel-1", [1, 2])

  async def handler(call) -> str:
    if call.json_output:
      return "[]"
    if _chapter_of(call.prompt) == 1:
      raise ProviderError("safety filter blocked the response")
    return "نص"

  await build_pipeline(scripted_client(handler)).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "completed"
  assert final.processed_count == 1
  assert final.target_chapters == [1]
  assert "Generation failed for chapter 1: safety filter blocked the response" in jobs_repo.messages("job-1")


@pytest.mark.anyio
async def test_rate_limit_rotates_keys_and_retries_same_chapter(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo) -> None:
  """With an exhausted key set the chapter is retried on each key until the job is paused."""
  seed_novel({1: "source 1 text", 2: "source 2 text"})
  await make_job("translation", "novel-1", [1, 2])

  async def handler(call) -> str:
    # Force termination of the otherwise endless retry loop.
    if len(client.calls) == 3:
      await jobs_repo.set_status("job-1", "paused")
    raise ProviderError("429 RESOURCE_EXHAUSTED: quota exceeded", rate_limited=True)

  client = scripted_client(handler)
  await build_pipeline(client).run("job-1")

  assert [call.api_key for call in client.calls] == ["k1", "k2", "k1"]
  assert all(_chapter_of(call.prompt) == 1 for call in client.calls)
  final = await jobs_repo.get_job("job-1")
  assert final.status == "paused"
  assert final.target_chapters == [1, 2]
  messages = jobs_repo.messages("job-1")
  assert messages.count("Rate limit hit on chapter 1; switching key and retrying.") == 3
  assert messages[-1] == "Job paused at chapter 1."


@pytest.mark.anyio
async def test_rate_limit_retry_cap_skips_chapter(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo, settings) -> None:
  from dataclasses import replace

  seed_novel({1: "source 1 text"})
  await make_job("translation", "novel-1", [1])

  async def handler(call) -> str:
    raise ProviderError("quota exceeded", rate_limited=True)

  client = scripted_client(handler)
  await build_pipeline(client, settings=replace(settings, max_rate_limit_retries=3)).run("job-1")

  assert [call.api_key for call in client.calls] == ["k1", "k2", "k1", "k2"]
  final = await jobs_repo.get_job("job-1")
  assert final.status == "completed"
  assert final.target_chapters == [1]
  assert "Chapter 1 still rate limited after 3 retries; skipping." in jobs_repo.messages("job-1")


@pytest.mark.anyio
async def test_pause_during_chapter_stops_at_next_checkpoint_and_resume_restarts_keys(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo) -> None:
  seed_novel({4: "source 4 text", 5: "source 5 text", 6: "source 6 text"})
  await make_job("translation", "novel-1", [4, 5, 6])

  async def handler(call) -> str:
    if call.json_output:
      return "[]"
    if _chapter_of(call.prompt) == 5:
      await jobs_repo.set_status("job-1", "paused")
    return "نص"

  client = scripted_client(handler)
  pipeline = build_pipeline(client)
  await pipeline.run("job-1")

  paused = await jobs_repo.get_job("job-1")
  assert paused.status == "paused"
  assert paused.target_chapters == [6]
  assert paused.processed_count == 2
  assert jobs_repo.messages("job-1")[-1] == "Job paused at chapter 6."

  await jobs_repo.set_status("job-1", "active")
  first_run_calls = len(client.calls)
  await pipeline.run("job-1")

  assert client.calls[first_run_calls].api_key == "k1"
  final = await jobs_repo.get_job("job-1")
  assert final.status == "completed"
  assert final.target_chapters == []
  assert final.processed_count == 3


@pytest.mark.anyio
async def test_run_that_loses_ownership_stops_without_writing_progress(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo) -> None:
  seed_novel({1: "source 1 text", 2: "source 2 text"})
  await make_job("translation", "novel-1", [1, 2])

  async def handler(call) -> str:
    if call.json_output:
      return "[]"
    # A second worker claims the job while this one is mid-chapter.
    await jobs_repo.claim_run("job-1", "other-run")
    return "نص"

  client = scripted_client(handler)
  await build_pipeline(client).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "active"
  assert final.run_token == "other-run"
  assert final.processed_count == 0
  assert final.target_chapters == [1, 2]
  assert len([call for call in client.calls if not call.json_output]) == 1


@pytest.mark.anyio
async def test_deleted_job_stops_silently(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo) -> None:
  seed_novel({1: "source 1 text", 2: "source 2 text"})
  await make_job("translation", "novel-1", [1, 2])

  async def handler(call) -> str:
    if call.json_output:
      return "[]"
    await jobs_repo.delete_job("job-1")
    return "نص"

  client = scripted_client(handler)
  await build_pipeline(client).run("job-1")

  assert await jobs_repo.get_job("job-1") is None
  assert len([call for call in client.calls if not call.json_output]) == 1


@pytest.mark.anyio
async def test_missing_keys_fail_the_job(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo, settings_repo) -> None:
  seed_novel({1: "source 1 text"})
  await settings_repo.update({"translator_api_keys": []})
  await make_job("translation", "novel-1", [1])
  client = scripted_client(AsyncMock())

  await build_pipeline(client).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "failed"
  assert jobs_repo.messages("job-1") == ["No API keys are configured for translation."]
  assert client.calls == []


@pytest.mark.anyio
async def test_missing_content_store_fails_the_job(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo) -> None:
  seed_novel({1: "source 1 text"})
  await make_job("translation", "novel-1", [1], api_keys=["job-key"])

  await build_pipeline(scripted_client(AsyncMock()), store_available=False).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "failed"
  assert "content store is not connected" in jobs_repo.messages("job-1")[-1]


@pytest.mark.anyio
async def test_unexpected_error_marks_job_failed(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo, glossary_repo) -> None:
  seed_novel({1: "source 1 text"})
  await make_job("translation", "novel-1", [1])
  glossary_repo.list_terms = AsyncMock(side_effect=RuntimeError("connection reset"))

  await build_pipeline(scripted_client(AsyncMock())).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "failed"
  assert jobs_repo.messages("job-1")[-1] == "Job failed unexpectedly: connection reset"


@pytest.mark.anyio
async def test_inactive_job_is_not_claimed(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo) -> None:
  seed_novel({1: "source 1 text"})
  await make_job("translation", "novel-1", [1], status="completed")
  client = scripted_client(AsyncMock())

  await build_pipeline(client).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.status == "completed"
  assert final.run_token is None
  assert client.calls == []


@pytest.mark.anyio
async def test_job_keys_override_global_keys(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo) -> None:
  seed_novel({1: "source 1 text"})
  await make_job("translation", "novel-1", [1], api_keys=["job-key"])

  async def handler(call) -> str:
    return "[]" if call.json_output else "نص"

  client = scripted_client(handler)
  await build_pipeline(client).run("job-1")

  assert {call.api_key for call in client.calls} == {"job-key"}


@pytest.mark.anyio
async def test_chapter_index_is_reread_for_each_chapter(seed_novel, build_pipeline, scripted_client, make_job, jobs_repo, novels_repo, content_store) -> None:
  """A chapter indexed while the job runs is translated; an unindexed one is skipped."""
  novel = seed_novel({1: "source 1 text"}, status="ongoing")
  content_store.put("novel-1", 2, "source 2 text")
  content_store.put("novel-1", 3, "source 3 text")
  await make_job("translation", "novel-1", [1, 2, 3])

  async def handler(call) -> str:
    if call.json_output:
      return "[]"
    if _chapter_of(call.prompt) == 1:
      novels_repo.add(replace(novel, chapter_numbers=[1, 2]))
    return "نص"

  client = scripted_client(handler)
  await build_pipeline(client).run("job-1")

  final = await jobs_repo.get_job("job-1")
  assert final.processed_count == 2
  assert final.target_chapters == [3]
  assert [_chapter_of(call.prompt) for call in client.calls if not call.json_output] == [1, 2]
  assert ("novel-1", 3) not in novels_repo.chapter_titles
  assert "Chapter 3 is not in the novel index; skipping." in jobs_repo.messages("job-1")

"""Import every mapped table so Base.metadata is complete for migrations."""

from __future__ import annotations

from novelhub.core.database import Base  # noqa: F401
from novelhub.schema.glossary import GlossaryTerm  # noqa: F401
from novelhub.schema.jobs import ChapterJob, JobEvent  # noqa: F401
from novelhub.schema.novels import Novel, NovelChapter  # noqa: F401
from novelhub.schema.settings import GlobalSettings  # noqa: F401

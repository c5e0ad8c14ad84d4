"""Initial schema.

Revision ID: 5a1c9e3d7b20
Revises:
Create Date: 2026-10-18 10:12:44.201877

"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision = "5a1c9e3d7b20"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "novels",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("cover", sa.String(), nullable=True),
    sa.Column("author", sa.String(), nullable=True),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("last_chapter_update", sa.DateTime(timezone=True), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_novels_status"), "novels", ["status"], unique=False)

  op.create_table(
    "novel_chapters",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("novel_id", sa.String(), nullable=False),
    sa.Column("number", sa.Integer(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("views", sa.Integer(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["novel_id"], ["novels.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("novel_id", "number", name="ux_novel_chapters_novel_number"),
  )
  op.create_index(op.f("ix_novel_chapters_novel_id"), "novel_chapters", ["novel_id"], unique=False)

  op.create_table(
    "chapter_jobs",
    sa.Column("job_id", sa.String(), nullable=False),
    sa.Column("job_kind", sa.String(), nullable=False),
    sa.Column("novel_id", sa.String(), nullable=False),
    sa.Column("novel_title", sa.String(), nullable=True),
    sa.Column("cover", sa.String(), nullable=True),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("target_chapters", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("processed_count", sa.Integer(), nullable=False),
    sa.Column("total_to_process", sa.Integer(), nullable=False),
    sa.Column("current_chapter", sa.Integer(), nullable=False),
    sa.Column("api_keys", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("run_token", sa.String(), nullable=True),
    sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("job_id"),
  )
  op.create_index(op.f("ix_chapter_jobs_job_kind"), "chapter_jobs", ["job_kind"], unique=False)
  op.create_index(op.f("ix_chapter_jobs_novel_id"), "chapter_jobs", ["novel_id"], unique=False)
  op.create_index(op.f("ix_chapter_jobs_status"), "chapter_jobs", ["status"], unique=False)
  op.create_index(op.f("ix_chapter_jobs_updated_at"), "chapter_jobs", ["updated_at"], unique=False)

  op.create_table(
    "chapter_job_events",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("job_id", sa.String(), nullable=False),
    sa.Column("severity", sa.String(), nullable=False),
    sa.Column("message", sa.Text(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["job_id"], ["chapter_jobs.job_id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_chapter_job_events_job_id"), "chapter_job_events", ["job_id"], unique=False)

  op.create_table(
    "glossary_terms",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("novel_id", sa.String(), nullable=False),
    sa.Column("term", sa.String(), nullable=False),
    sa.Column("translation", sa.String(), nullable=False),
    sa.Column("category", sa.String(), nullable=False),
    sa.Column("description", sa.Text(), nullable=False),
    sa.Column("auto_generated", sa.Boolean(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("novel_id", "term", name="ux_glossary_terms_novel_term"),
  )
  op.create_index(op.f("ix_glossary_terms_novel_id"), "glossary_terms", ["novel_id"], unique=False)

  op.create_table(
    "global_settings",
    sa.Column("id", sa.Integer(), nullable=False),
    sa.Column("provider", sa.String(), nullable=False),
    sa.Column("model", sa.String(), nullable=False),
    sa.Column("temperature", sa.Float(), nullable=False),
    sa.Column("custom_prompt", sa.Text(), nullable=False),
    sa.Column("translator_model", sa.String(), nullable=False),
    sa.Column("translator_extract_prompt", sa.Text(), nullable=False),
    sa.Column("translator_api_keys", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("title_gen_model", sa.String(), nullable=False),
    sa.Column("title_gen_prompt", sa.Text(), nullable=False),
    sa.Column("title_gen_api_keys", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_table("global_settings")
  op.drop_index(op.f("ix_glossary_terms_novel_id"), table_name="glossary_terms")
  op.drop_table("glossary_terms")
  op.drop_index(op.f("ix_chapter_job_events_job_id"), table_name="chapter_job_events")
  op.drop_table("chapter_job_events")
  op.drop_index(op.f("ix_chapter_jobs_updated_at"), table_name="chapter_jobs")
  op.drop_index(op.f("ix_chapter_jobs_status"), table_name="chapter_jobs")
  op.drop_index(op.f("ix_chapter_jobs_novel_id"), table_name="chapter_jobs")
  op.drop_index(op.f("ix_chapter_jobs_job_kind"), table_name="chapter_jobs")
  op.drop_table("chapter_jobs")
  op.drop_index(op.f("ix_novel_chapters_novel_id"), table_name="novel_chapters")
  op.drop_table("novel_chapters")
  op.drop_index(op.f("ix_novels_status"), table_name="novels")
  op.drop_table("novels")

"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

All 12 tables as defined in paperforum/models/database_models.py:
users, journals, papers, paper_versions, comments, reviews, bookmarks,
notifications, paper_views, user_interactions, paper_insights, trending_topics.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)]
    if updated:
        cols.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        )
    return cols


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("orcid", sa.String(64), nullable=True),
        sa.Column("affiliation", sa.String(255), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        *_timestamps(),
    )

    # ── journals ──────────────────────────────────────────────────────────
    op.create_table(
        "journals",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("issn", sa.String(32), nullable=True),
        *_timestamps(updated=False),
    )

    # ── papers ────────────────────────────────────────────────────────────
    op.create_table(
        "papers",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("abstract", sa.Text, nullable=False),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("authors", sa.JSON, nullable=False),
        sa.Column("author_ids", sa.JSON, nullable=False),
        sa.Column("research_field", sa.String(255), nullable=True, index=True),
        sa.Column("keywords", sa.JSON, nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        sa.Column("pdf_url", sa.Text, nullable=True),
        sa.Column("doi", sa.String(255), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.false(), index=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True, index=True),
        sa.Column("journal_id", sa.Integer, sa.ForeignKey("journals.id", ondelete="SET NULL"), nullable=True),
        sa.Column("story_data", sa.JSON, nullable=False),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("engagement_score", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.Column("created_by", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    )

    # ── paper_versions ────────────────────────────────────────────────────
    op.create_table(
        "paper_versions",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("paper_id", sa.Integer, sa.ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("abstract", sa.Text, nullable=False),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("pdf_url", sa.Text, nullable=True),
        *_timestamps(updated=False),
        sa.Column("created_by", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    )

    # ── comments ──────────────────────────────────────────────────────────
    op.create_table(
        "comments",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("paper_id", sa.Integer, sa.ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("parent_id", sa.Integer, sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True),
        *_timestamps(),
    )

    # ── reviews ───────────────────────────────────────────────────────────
    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("paper_id", sa.Integer, sa.ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("recommendation", sa.String(64), nullable=True),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # ── bookmarks ─────────────────────────────────────────────────────────
    op.create_table(
        "bookmarks",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("paper_id", sa.Integer, sa.ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint("user_id", "paper_id", name="uq_bookmarks_user_paper"),
    )

    # ── notifications ─────────────────────────────────────────────────────
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=True),
        sa.Column("entity_id", sa.Integer, nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false(), index=True),
        *_timestamps(updated=False),
    )

    # ── paper_views ───────────────────────────────────────────────────────
    op.create_table(
        "paper_views",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("paper_id", sa.Integer, sa.ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("session_id", sa.String(255), nullable=True),
        sa.Column("read_time_seconds", sa.Integer, nullable=True),
        sa.Column("viewed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── user_interactions ─────────────────────────────────────────────────
    op.create_table(
        "user_interactions",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("paper_id", sa.Integer, sa.ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("interaction_type", sa.String(32), nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False),
        *_timestamps(updated=False),
    )

    # ── paper_insights ────────────────────────────────────────────────────
    op.create_table(
        "paper_insights",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("paper_id", sa.Integer, sa.ForeignKey("papers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("key_insights", sa.JSON, nullable=False),
        sa.Column("why_it_matters", sa.Text, nullable=True),
        sa.Column("real_world_applications", sa.JSON, nullable=False),
        sa.Column("cross_field_connections", sa.JSON, nullable=False),
        sa.Column("impact_score", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )

    # ── trending_topics ───────────────────────────────────────────────────
    op.create_table(
        "trending_topics",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("topic", sa.String(255), nullable=False, unique=True),
        sa.Column("field", sa.String(255), nullable=True),
        sa.Column("momentum", sa.Integer, nullable=False, server_default="0"),
        sa.Column("related_paper_ids", sa.JSON, nullable=False),
        sa.Column("calculated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("trending_topics")
    op.drop_table("paper_insights")
    op.drop_table("user_interactions")
    op.drop_table("paper_views")
    op.drop_table("notifications")
    op.drop_table("bookmarks")
    op.drop_table("reviews")
    op.drop_table("comments")
    op.drop_table("paper_versions")
    op.drop_table("papers")
    op.drop_table("journals")
    op.drop_table("users")

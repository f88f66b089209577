"""Create ai_suggestion and session_summary tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-14

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "ai_suggestion",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "session_id",
            sa.String(length=36),
            sa.ForeignKey("recording_session.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(length=16), nullable=False),
        sa.Column("context", sa.Text(), nullable=True),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("acknowledged", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_ai_suggestion_session_id"), "ai_suggestion", ["session_id"])

    op.create_table(
        "session_summary",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "session_id",
            sa.String(length=36),
            sa.ForeignKey("recording_session.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("key_topics", sa.JSON(), nullable=False),
        sa.Column("main_concerns", sa.JSON(), nullable=False),
        sa.Column("progress_notes", sa.Text(), nullable=False),
        sa.Column("next_steps", sa.JSON(), nullable=False),
        sa.Column("risk_assessment", sa.Text(), nullable=False),
        sa.Column("overall_summary", sa.Text(), nullable=False),
        sa.Column("session_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("transcript_length", sa.Integer(), nullable=False),
        sa.Column("transcription_count", sa.Integer(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_session_summary_session_id"), "session_summary", ["session_id"], unique=True)


def downgrade() -> None:
    op.drop_index(op.f("ix_session_summary_session_id"), table_name="session_summary")
    op.drop_table("session_summary")
    op.drop_index(op.f("ix_ai_suggestion_session_id"), table_name="ai_suggestion")
    op.drop_table("ai_suggestion")

"""Create transcription_chunk table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "transcription_chunk",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "session_id",
            sa.String(length=36),
            sa.ForeignKey("recording_session.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("chunk_index", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("audio_key", sa.String(length=512), nullable=True),
        sa.Column("speaker", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_transcription_chunk_session_id"), "transcription_chunk", ["session_id"])
    op.create_index(
        "ix_transcription_chunk_order", "transcription_chunk", ["session_id", "chunk_index", "timestamp"]
    )


def downgrade() -> None:
    op.drop_index("ix_transcription_chunk_order", table_name="transcription_chunk")
    op.drop_index(op.f("ix_transcription_chunk_session_id"), table_name="transcription_chunk")
    op.drop_table("transcription_chunk")

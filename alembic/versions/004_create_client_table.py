"""Create client table and link sessions to clients

Revision ID: 004
Revises: 003
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "004"
down_revision: str | None = "003"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "client",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("age", sa.String(length=10), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("emergency_contact", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("last_contact_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_client_owner_id"), "client", ["owner_id"])
    op.create_index(op.f("ix_client_name"), "client", ["name"])
    op.create_index(op.f("ix_client_status"), "client", ["status"])

    with op.batch_alter_table("recording_session") as batch_op:
        batch_op.add_column(sa.Column("client_id", sa.String(length=36), nullable=True))
        batch_op.create_foreign_key(
            "fk_recording_session_client_id", "client", ["client_id"], ["id"], ondelete="SET NULL"
        )
        batch_op.create_index(op.f("ix_recording_session_client_id"), ["client_id"])


def downgrade() -> None:
    with op.batch_alter_table("recording_session") as batch_op:
        batch_op.drop_index(op.f("ix_recording_session_client_id"))
        batch_op.drop_constraint("fk_recording_session_client_id", type_="foreignkey")
        batch_op.drop_column("client_id")

    op.drop_index(op.f("ix_client_status"), table_name="client")
    op.drop_index(op.f("ix_client_name"), table_name="client")
    op.drop_index(op.f("ix_client_owner_id"), table_name="client")
    op.drop_table("client")

"""Initial schema — sticky_notes with unique signature.

Revision ID: 001_sticky_notes
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_sticky_notes"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sticky_notes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("signature", sa.String(512), nullable=False),
        sa.Column("wallet_address", sa.String(128), nullable=False),
        sa.Column("color", sa.String(10), nullable=False, server_default="yellow"),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "uq_sticky_notes_signature", "sticky_notes", ["signature"], unique=True,
    )
    op.create_index(
        "ix_sticky_notes_timestamp_id", "sticky_notes", ["timestamp", "id"],
    )


def downgrade() -> None:
    op.drop_index("ix_sticky_notes_timestamp_id", table_name="sticky_notes")
    op.drop_index("uq_sticky_notes_signature", table_name="sticky_notes")
    op.drop_table("sticky_notes")

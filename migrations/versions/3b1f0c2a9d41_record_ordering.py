"""record ordering

Revision ID: 3b1f0c2a9d41
Revises:
Create Date: 2026-10-19 09:12:40.512318

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b1f0c2a9d41"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the record and migration_flag tables."""
    op.create_table(
        "record",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("record_type", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("menu_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("legacy_order", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_record_type_status_order",
        "record",
        ["record_type", "status", "menu_order"],
    )
    op.create_table(
        "migration_flag",
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("done", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("name"),
    )


def downgrade() -> None:
    """Drop the ordering tables."""
    op.drop_table("migration_flag")
    op.drop_index("ix_record_type_status_order", table_name="record")
    op.drop_table("record")

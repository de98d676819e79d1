"""Initial schema — resolutions (with embedded ballots) and members.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "resolutions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("scope_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("details", sa.Text, nullable=False, server_default=""),
        sa.Column("proposer_id", sa.String(64), nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("ballots", sa.JSON, nullable=False),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
    )
    op.create_index(
        "ix_resolutions_scope_created", "resolutions", ["scope_id", "created_at"],
    )

    op.create_table(
        "members",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("scope_id", sa.String(64), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_members_scope_name", "members", ["scope_id", "last_name", "first_name"],
    )


def downgrade() -> None:
    op.drop_index("ix_members_scope_name", table_name="members")
    op.drop_table("members")
    op.drop_index("ix_resolutions_scope_created", table_name="resolutions")
    op.drop_table("resolutions")

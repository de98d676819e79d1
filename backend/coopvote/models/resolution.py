"""Resolution ORM — persists a time-boxed governance question and its ballots.

Invariants:
    - id is UUID primary key
    - scope_id and created_at never change after insert
    - ballots stores the whole ballot set as one JSON array (see core/ballot_set.py)
    - version increments on every UPDATE; a stale version aborts the flush

Design Decisions:
    - JSON column for ballots: one row write per vote gives atomic visibility of
      the whole set to readers
    - version_id_col over row locks: works on PostgreSQL and SQLite alike and lets
      the store retry a lost race instead of blocking
    - No status column: open/closed is derived by core/lifecycle.py
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from coopvote.db.base import Base


class Resolution(Base):
    """Resolution aggregate root — owns its ballots."""
    __tablename__ = "resolutions"
    __table_args__ = (
        Index("ix_resolutions_scope_created", "scope_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    scope_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    proposer_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True,
    )
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    ballots: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

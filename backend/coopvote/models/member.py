"""Member ORM — local mirror of the cooperative roster fed by the identity provider.

Invariants:
    - id is the identity provider's member id (opaque string)
    - scope_id follows the latest identity seen for the member
    - role mirrors the identity provider; admins/superusers are never eligible voters

Design Decisions:
    - Mirror table over remote lookups: delegate validation and detail reports
      need the roster without a network hop per request
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from coopvote.db.base import Base


class Member(Base):
    """Directory entry for one cooperative member."""
    __tablename__ = "members"
    __table_args__ = (
        Index("ix_members_scope_name", "scope_id", "last_name", "first_name"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    scope_id: Mapped[str] = mapped_column(String(64), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(
        String(100), nullable=False, default="",
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="member",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

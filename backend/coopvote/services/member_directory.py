"""Member Directory — SQL-backed roster implementing core MemberDirectory.

Invariants:
    - register() upserts the caller from identity data; first sight creates the row
    - list_eligible() excludes admins and superusers, sorted by surname then given name
    - get_member() is scope-checked: a member of another cooperative reads as absent

Design Decisions:
    - Registration commits on its own: roster freshness must not depend on
      whether the surrounding vote succeeds
    - Concurrent first registration of the same member resolved by re-reading
      after an IntegrityError instead of locking
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coopvote.core.domain_types import MemberId, MemberRole, ScopeId
from coopvote.core.identity import IdentityContext
from coopvote.core.repository_protocols import DirectoryMember
from coopvote.models.member import Member

logger = logging.getLogger(__name__)

_ADMIN_ROLES = (MemberRole.ADMIN.value, MemberRole.SUPERUSER.value)


def _to_directory_member(row: Member) -> DirectoryMember:
    return DirectoryMember(
        id=MemberId(row.id),
        scope_id=ScopeId(row.scope_id),
        first_name=row.first_name,
        last_name=row.last_name,
        role=MemberRole(row.role),
    )


class SqlMemberDirectory:
    """Roster of every cooperative, mirrored from identity headers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_member(
        self, scope_id: ScopeId, member_id: MemberId,
    ) -> DirectoryMember | None:
        result = await self.db.execute(
            select(Member)
            .where(Member.id == member_id)
            .where(Member.scope_id == scope_id),
        )
        row = result.scalar_one_or_none()
        return _to_directory_member(row) if row else None

    async def list_eligible(self, scope_id: ScopeId) -> list[DirectoryMember]:
        result = await self.db.execute(
            select(Member)
            .where(Member.scope_id == scope_id)
            .where(Member.role.not_in(_ADMIN_ROLES))
            .order_by(Member.last_name, Member.first_name),
        )
        return [_to_directory_member(row) for row in result.scalars().all()]

    async def names_for(self, member_ids: set[str]) -> dict[str, str]:
        """Display names for arbitrary members (delegators outside the roster)."""
        if not member_ids:
            return {}
        result = await self.db.execute(
            select(Member).where(Member.id.in_(member_ids)),
        )
        return {
            row.id: _to_directory_member(row).display_name
            for row in result.scalars().all()
        }

    async def register(self, identity: IdentityContext) -> DirectoryMember:
        """Create or refresh the caller's roster entry."""
        row = await self.db.get(Member, identity.member_id)
        if row is None:
            row = Member(
                id=identity.member_id,
                scope_id=identity.scope_id,
                first_name=identity.first_name,
                last_name=identity.last_name,
                role=identity.role.value,
            )
            self.db.add(row)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.info(
                    "Member registered concurrently, re-reading",
                    extra={"member_id": identity.member_id},
                )
                row = await self.db.get(Member, identity.member_id)
                if row is None:
                    raise
            else:
                logger.info(
                    f"Registered member {identity.member_id}",
                    extra={
                        "member_id": identity.member_id,
                        "scope_id": identity.scope_id,
                    },
                )
                return _to_directory_member(row)

        if _differs(row, identity):
            row.scope_id = identity.scope_id
            row.first_name = identity.first_name
            row.last_name = identity.last_name
            row.role = identity.role.value
            row.updated_at = datetime.now(timezone.utc)
            await self.db.commit()
        return _to_directory_member(row)


def _differs(row: Member, identity: IdentityContext) -> bool:
    return (
        row.scope_id != identity.scope_id
        or row.first_name != identity.first_name
        or row.last_name != identity.last_name
        or row.role != identity.role.value
    )

"""Caller Identity — explicit identity context and the single capability predicate.

Invariants:
    - IdentityContext is built once at the request boundary and passed down explicitly
    - The core never reads ambient request/session state
    - can_manage_resolutions is the only place that interprets roles for management

Design Decisions:
    - Frozen dataclass: identity must not change mid-operation
    - first/last name split on the first space, matching how the directory stores names
"""

from dataclasses import dataclass

from coopvote.core.domain_types import MemberId, MemberRole, ScopeId


@dataclass(frozen=True)
class IdentityContext:
    """Who is calling, as asserted by the identity provider."""
    member_id: MemberId
    display_name: str
    scope_id: ScopeId
    role: MemberRole = MemberRole.MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role.is_administrator

    @property
    def first_name(self) -> str:
        return split_display_name(self.display_name)[0]

    @property
    def last_name(self) -> str:
        return split_display_name(self.display_name)[1]


def split_display_name(display_name: str) -> tuple[str, str]:
    """'Ana María Pérez' -> ('Ana', 'María Pérez')."""
    parts = display_name.strip().split(" ", 1)
    first = parts[0]
    last = parts[1].strip() if len(parts) > 1 else ""
    return first, last


def can_manage_resolutions(scope_id: ScopeId, caller: IdentityContext) -> bool:
    """Administrators manage resolutions of their own cooperative only."""
    return caller.is_admin and caller.scope_id == scope_id


def can_cast_ballot(scope_id: ScopeId, caller: IdentityContext) -> bool:
    """Only non-administrator members of the scope are on the voting roll."""
    return not caller.is_admin and caller.scope_id == scope_id

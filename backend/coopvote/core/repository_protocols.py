"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE their results are never async themselves
    - DirectoryMember is a frozen value object, not the ORM row: core never sees
      SQLAlchemy instances
"""

from dataclasses import dataclass
from typing import Protocol

from coopvote.core.domain_types import MemberId, MemberRole, ScopeId
from coopvote.core.identity import IdentityContext


@dataclass(frozen=True)
class DirectoryMember:
    """A roster entry as reported by the member directory."""
    id: MemberId
    scope_id: ScopeId
    first_name: str
    last_name: str = ""
    role: MemberRole = MemberRole.MEMBER

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_eligible(self) -> bool:
        return not self.role.is_administrator


class MemberDirectory(Protocol):
    """Contract for the cooperative roster — implemented by shell."""
    async def get_member(
        self, scope_id: ScopeId, member_id: MemberId,
    ) -> DirectoryMember | None: ...
    async def list_eligible(self, scope_id: ScopeId) -> list[DirectoryMember]: ...
    async def names_for(self, member_ids: set[str]) -> dict[str, str]: ...
    async def register(self, identity: IdentityContext) -> DirectoryMember: ...

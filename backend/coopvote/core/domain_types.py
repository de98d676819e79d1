"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ResolutionId wraps UUID; MemberId and ScopeId wrap opaque strings
    - MemberId/ScopeId match ID_PATTERN (validated at the API boundary)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
    - NO_VOTE kept as a plain constant: it is a display marker, never a stored option
"""

from enum import Enum
from typing import NewType
from uuid import UUID


ResolutionId = NewType("ResolutionId", UUID)
MemberId = NewType("MemberId", str)
ScopeId = NewType("ScopeId", str)

# Opaque identifiers handed over by the identity provider
ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"

NO_VOTE = "NO VOTO"

MAX_DURATION_MINUTES = 525_600  # one year


class VoteOption(str, Enum):
    YES = "Yes"
    NO = "No"
    ABSTAIN = "Abstain"


class ResolutionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class MemberRole(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"
    SUPERUSER = "superuser"

    @property
    def is_administrator(self) -> bool:
        return self in (MemberRole.ADMIN, MemberRole.SUPERUSER)

"""Request Dependencies — identity handoff, clock, and service wiring.

Invariants:
    - get_identity is the ONLY place that reads identity from the request
    - Missing identity or a rejected access token -> AuthenticationError (401)
    - Malformed member/scope ids or unknown roles -> InvalidInputError (400)
    - get_clock is a dependency so tests can freeze or move time

Design Decisions:
    - Headers over query parameters: identity never ends up in access logs/URLs
    - hmac.compare_digest for the shared token: constant-time comparison
"""

import hmac
import re
from datetime import datetime
from typing import Callable

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from coopvote.config import Settings, get_settings
from coopvote.core.domain_types import ID_PATTERN, MemberId, MemberRole, ScopeId
from coopvote.core.errors import AuthenticationError, InvalidInputError
from coopvote.core.identity import IdentityContext
from coopvote.core.lifecycle import utc_now
from coopvote.infrastructure.database import get_db
from coopvote.services.member_directory import SqlMemberDirectory
from coopvote.services.resolution_store import ResolutionStore
from coopvote.services.voting_service import VotingService

_ID_RE = re.compile(ID_PATTERN)


def _check_id(value: str, field: str) -> str:
    if not _ID_RE.match(value):
        raise InvalidInputError(f"Invalid {field} format", field=field)
    return value


async def get_identity(
    x_member_id: str | None = Header(None),
    x_member_name: str | None = Header(None),
    x_member_role: str | None = Header(None),
    x_scope_id: str | None = Header(None),
    x_access_token: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> IdentityContext:
    """Build the caller's identity from headers set by the identity provider."""
    if settings.access_token and not hmac.compare_digest(
        (x_access_token or "").encode(), settings.access_token.encode(),
    ):
        raise AuthenticationError("Invalid or missing access token")
    if not x_member_id or not x_scope_id:
        raise AuthenticationError("Member and cooperative identity required")

    member_id = _check_id(x_member_id, "member_id")
    scope_id = _check_id(x_scope_id, "scope_id")
    try:
        role = MemberRole((x_member_role or MemberRole.MEMBER.value).lower())
    except ValueError:
        raise InvalidInputError(f"Unknown role '{x_member_role}'", field="role")

    display_name = (x_member_name or "").strip()[:200] or member_id
    return IdentityContext(
        member_id=MemberId(member_id),
        display_name=display_name,
        scope_id=ScopeId(scope_id),
        role=role,
    )


def get_clock() -> Callable[[], datetime]:
    return utc_now


async def get_voting_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> VotingService:
    store = ResolutionStore(
        db,
        max_retries=settings.concurrency_max_retries,
        retry_after_ms=settings.concurrency_retry_after_ms,
    )
    return VotingService(store, SqlMemberDirectory(db), clock=clock)

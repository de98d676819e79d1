"""Voting Service — imperative shell around the pure voting core.

Invariants:
    - Capability checks run first, before any resolution lookup
    - Every lookup is scoped to the caller's cooperative (mismatch -> NotFound)
    - Lifecycle is checked before delegate validation; delegate validation before
      any mutation; the mutation itself runs inside ResolutionStore.mutate
    - Callers are registered in the member directory on every operation

Design Decisions:
    - Clock injected (callable) so lifecycle behaviour is testable without sleeping
    - Responses built here, not in routes: routes stay thin
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from coopvote.core.ballot_set import BallotSet
from coopvote.core.ballots import apply_vote
from coopvote.core.delegation import check_delegate
from coopvote.core.domain_types import MemberId
from coopvote.core.errors import (
    ErrorContext, InvalidInputError, PermissionDeniedError, ResourceNotFoundError,
)
from coopvote.core.identity import (
    IdentityContext, can_cast_ballot, can_manage_resolutions,
)
from coopvote.core.lifecycle import (
    closes_at, require_open, resolution_status, utc_now,
)
from coopvote.core.repository_protocols import MemberDirectory
from coopvote.core.tally import counts, detail
from coopvote.models.resolution import Resolution
from coopvote.schemas.resolution import (
    BallotDetailEntry,
    BallotDetailResponse,
    MemberListResponse,
    MemberResponse,
    ResolutionCreate,
    ResolutionListResponse,
    ResolutionResponse,
    ResolutionUpdate,
    TallyResponse,
    VoteCast,
)
from coopvote.services.resolution_store import ResolutionStore

logger = logging.getLogger(__name__)


class VotingService:
    """One method per logical operation exposed by the API."""

    def __init__(
        self,
        store: ResolutionStore,
        directory: MemberDirectory,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.directory = directory
        self.clock = clock

    # ─── Queries ────────────────────────────────────────────────

    async def list_resolutions(
        self, caller: IdentityContext,
    ) -> ResolutionListResponse:
        await self.directory.register(caller)
        now = self.clock()
        active, past = await self.store.list_by_scope(caller.scope_id, now)
        return ResolutionListResponse(
            active=[self._to_response(r, now) for r in active],
            past=[self._to_response(r, now) for r in past],
        )

    async def get_resolution(
        self, caller: IdentityContext, resolution_id: UUID,
    ) -> ResolutionResponse:
        await self.directory.register(caller)
        resolution = await self.store.get_scoped(resolution_id, caller.scope_id)
        return self._to_response(resolution, self.clock())

    async def ballot_detail(
        self, caller: IdentityContext, resolution_id: UUID,
    ) -> BallotDetailResponse:
        await self.directory.register(caller)
        resolution = await self.store.get_scoped(resolution_id, caller.scope_id)
        members = await self.directory.list_eligible(caller.scope_id)
        ballots = BallotSet.from_rows(resolution.ballots)

        known = {m.id for m in members}
        missing = {
            b.delegated_by for b in ballots
            if b.delegated_by is not None and b.delegated_by not in known
        }
        names = {m.id: m.display_name for m in members}
        names.update(await self.directory.names_for(missing))

        return BallotDetailResponse(
            resolution_id=resolution.id,
            status=resolution_status(resolution, self.clock()),
            details=[
                BallotDetailEntry(**entry)
                for entry in detail(ballots, members, names)
            ],
        )

    async def list_members(self, caller: IdentityContext) -> MemberListResponse:
        await self.directory.register(caller)
        members = await self.directory.list_eligible(caller.scope_id)
        return MemberListResponse(
            members=[
                MemberResponse(id=m.id, name=m.display_name) for m in members
            ],
        )

    # ─── Administration ─────────────────────────────────────────

    async def create_resolution(
        self, caller: IdentityContext, body: ResolutionCreate,
    ) -> ResolutionResponse:
        self._require_manager(caller)
        await self.directory.register(caller)
        if body.proposer_id:
            await self._check_proposer(caller, body.proposer_id)
        now = self.clock()
        resolution = await self.store.create(
            scope_id=caller.scope_id,
            title=body.title,
            details=body.details or "",
            duration_minutes=body.duration_minutes,
            proposer_id=body.proposer_id,
            now=now,
        )
        return self._to_response(resolution, now)

    async def edit_resolution(
        self,
        caller: IdentityContext,
        resolution_id: UUID,
        body: ResolutionUpdate,
    ) -> ResolutionResponse:
        self._require_manager(caller)
        await self.directory.register(caller)
        await self.store.get_scoped(resolution_id, caller.scope_id)
        fields: dict = {
            "title": body.title,
            "details": body.details or "",
            "duration_minutes": body.duration_minutes,
        }
        if body.proposer_id:
            await self._check_proposer(caller, body.proposer_id)
            fields["proposer_id"] = body.proposer_id
        now = self.clock()
        resolution = await self.store.update(
            resolution_id, caller.scope_id, fields, now,
        )
        return self._to_response(resolution, now)

    async def delete_resolution(
        self, caller: IdentityContext, resolution_id: UUID,
    ) -> None:
        """Delete regardless of lifecycle; another scope's id reads as absent."""
        self._require_manager(caller)
        await self.directory.register(caller)
        if not await self.store.delete(resolution_id, caller.scope_id):
            raise ResourceNotFoundError(
                "Resolution", str(resolution_id),
                context=ErrorContext(
                    resolution_id=str(resolution_id), scope_id=caller.scope_id,
                ),
            )

    # ─── Voting ─────────────────────────────────────────────────

    async def cast_vote(
        self, caller: IdentityContext, resolution_id: UUID, body: VoteCast,
    ) -> TallyResponse:
        if not can_cast_ballot(caller.scope_id, caller):
            raise PermissionDeniedError(
                "Administrators do not cast ballots",
                context=ErrorContext(
                    scope_id=caller.scope_id, member_id=caller.member_id,
                ),
            )
        await self.directory.register(caller)
        now = self.clock()
        resolution = await self.store.get_scoped(resolution_id, caller.scope_id)
        require_open(resolution, now)

        delegate_to = MemberId(body.delegate_to) if body.delegate_to else None
        delegate = None
        if delegate_to is not None and delegate_to != caller.member_id:
            delegate = await self.directory.get_member(
                caller.scope_id, delegate_to,
            )
        check_delegate(caller.member_id, delegate_to, delegate, caller.scope_id)

        def apply(row: Resolution) -> BallotSet:
            ballots = BallotSet.from_rows(row.ballots)
            apply_vote(ballots, caller.member_id, body.option, delegate_to, now)
            row.ballots = ballots.to_rows()
            return ballots

        resolution, ballots = await self.store.mutate(
            resolution_id, caller.scope_id, apply, now,
        )
        logger.info(
            f"Ballot recorded ({body.option.value})",
            extra={
                "resolution_id": str(resolution_id),
                "member_id": caller.member_id,
                "scope_id": caller.scope_id,
            },
        )
        return TallyResponse(resolution_id=resolution.id, counts=counts(ballots))

    # ─── Helpers ────────────────────────────────────────────────

    def _require_manager(self, caller: IdentityContext) -> None:
        if not can_manage_resolutions(caller.scope_id, caller):
            raise PermissionDeniedError(
                "Administrator permissions required",
                context=ErrorContext(
                    scope_id=caller.scope_id, member_id=caller.member_id,
                ),
            )

    async def _check_proposer(
        self, caller: IdentityContext, proposer_id: str,
    ) -> None:
        proposer = await self.directory.get_member(
            caller.scope_id, MemberId(proposer_id),
        )
        if proposer is None or not proposer.is_eligible:
            raise InvalidInputError(
                f"Proposer '{proposer_id}' is not a member of this cooperative",
                field="proposer_id",
                context=ErrorContext(scope_id=caller.scope_id),
            )

    @staticmethod
    def _to_response(resolution: Resolution, now: datetime) -> ResolutionResponse:
        ballots = BallotSet.from_rows(resolution.ballots)
        return ResolutionResponse(
            id=resolution.id,
            scope_id=resolution.scope_id,
            title=resolution.title,
            details=resolution.details or "",
            proposer_id=resolution.proposer_id,
            duration_minutes=resolution.duration_minutes,
            created_at=resolution.created_at,
            closes_at=closes_at(resolution),
            status=resolution_status(resolution, now),
            counts=counts(ballots),
            total_ballots=len(ballots),
        )

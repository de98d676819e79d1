"""Resolution Routes — list, create, edit, delete, vote, and ballot detail.

Invariants:
    - User input is validated by Pydantic before reaching the route handler
    - Identity comes only from get_identity; routes never read headers themselves
    - Routes hold no business rules — VotingService does

Design Decisions:
    - Votes are a sub-resource (POST /{id}/votes): one request = one ballot upsert
    - DELETE returns 200 with a body (not 204) so clients get a confirmation message
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from coopvote.api.dependencies import get_identity, get_voting_service
from coopvote.core.identity import IdentityContext
from coopvote.schemas.resolution import (
    BallotDetailResponse,
    ResolutionCreate,
    ResolutionListResponse,
    ResolutionResponse,
    ResolutionUpdate,
    TallyResponse,
    VoteCast,
)
from coopvote.services.voting_service import VotingService

router = APIRouter(prefix="/api/v1/resolutions", tags=["resolutions"])


@router.get("", response_model=ResolutionListResponse)
async def list_resolutions(
    caller: IdentityContext = Depends(get_identity),
    service: VotingService = Depends(get_voting_service),
):
    """Active and past resolutions of the caller's cooperative."""
    return await service.list_resolutions(caller)


@router.post(
    "", response_model=ResolutionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_resolution(
    body: ResolutionCreate,
    caller: IdentityContext = Depends(get_identity),
    service: VotingService = Depends(get_voting_service),
):
    """Open a new resolution (administrators only)."""
    return await service.create_resolution(caller, body)


@router.get("/{resolution_id}", response_model=ResolutionResponse)
async def get_resolution(
    resolution_id: UUID,
    caller: IdentityContext = Depends(get_identity),
    service: VotingService = Depends(get_voting_service),
):
    return await service.get_resolution(caller, resolution_id)


@router.put("/{resolution_id}", response_model=ResolutionResponse)
async def edit_resolution(
    resolution_id: UUID,
    body: ResolutionUpdate,
    caller: IdentityContext = Depends(get_identity),
    service: VotingService = Depends(get_voting_service),
):
    """Edit an open resolution (administrators only)."""
    return await service.edit_resolution(caller, resolution_id, body)


@router.delete("/{resolution_id}")
async def delete_resolution(
    resolution_id: UUID,
    caller: IdentityContext = Depends(get_identity),
    service: VotingService = Depends(get_voting_service),
):
    """Delete a resolution of the caller's cooperative, open or closed."""
    await service.delete_resolution(caller, resolution_id)
    return {"deleted": True, "message": "Resolution deleted"}


@router.post("/{resolution_id}/votes", response_model=TallyResponse)
async def cast_vote(
    resolution_id: UUID,
    body: VoteCast,
    caller: IdentityContext = Depends(get_identity),
    service: VotingService = Depends(get_voting_service),
):
    """Record the caller's ballot (and proxy ballot); returns the live tally."""
    return await service.cast_vote(caller, resolution_id, body)


@router.get("/{resolution_id}/detail", response_model=BallotDetailResponse)
async def get_ballot_detail(
    resolution_id: UUID,
    caller: IdentityContext = Depends(get_identity),
    service: VotingService = Depends(get_voting_service),
):
    """Per-member voting detail, non-voters included."""
    return await service.ballot_detail(caller, resolution_id)

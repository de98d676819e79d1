"""Member Routes — eligible roster of the caller's cooperative.

Invariants:
    - Only non-administrator members are listed (the voting roll)
    - Sorted by surname, then given name

Design Decisions:
    - Exposed so clients can offer proposer and delegate pickers without a
      second round-trip to the identity provider
"""

from fastapi import APIRouter, Depends

from coopvote.api.dependencies import get_identity, get_voting_service
from coopvote.core.identity import IdentityContext
from coopvote.schemas.resolution import MemberListResponse
from coopvote.services.voting_service import VotingService

router = APIRouter(prefix="/api/v1/members", tags=["members"])


@router.get("", response_model=MemberListResponse)
async def list_members(
    caller: IdentityContext = Depends(get_identity),
    service: VotingService = Depends(get_voting_service),
):
    return await service.list_members(caller)

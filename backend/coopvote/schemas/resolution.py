"""Resolution Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - title: 1-200 chars, stripped, non-empty; duration_minutes: 1..MAX_DURATION_MINUTES
    - Member ids (proposer_id, delegate_to) match ID_PATTERN
    - VoteCast.option is one of Yes / No / Abstain; anything else is a 400
    - An empty delegate_to means "no delegation"

Design Decisions:
    - VoteOption enum as field type: Pydantic rejects unknown options natively
    - ResolutionUpdate shares the create contract: edits resend title and duration
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from coopvote.core.domain_types import (
    ID_PATTERN, MAX_DURATION_MINUTES, ResolutionStatus, VoteOption,
)


class ResolutionCreate(BaseModel):
    """Resolution creation — title and duration are mandatory."""
    title: str = Field(min_length=1, max_length=200)
    details: str | None = Field(None, max_length=5000)
    duration_minutes: int = Field(gt=0, le=MAX_DURATION_MINUTES)
    proposer_id: str | None = Field(None, pattern=ID_PATTERN)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v

    @field_validator("proposer_id", mode="before")
    @classmethod
    def blank_proposer_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ResolutionUpdate(ResolutionCreate):
    """Resolution edit — omitted proposer keeps the current one."""


class VoteCast(BaseModel):
    """A member's vote, optionally assigning the same choice to a delegate."""
    option: VoteOption
    delegate_to: str | None = Field(None, pattern=ID_PATTERN)

    @field_validator("delegate_to", mode="before")
    @classmethod
    def blank_delegate_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ResolutionResponse(BaseModel):
    """Resolution as shown to members, with live counts."""
    id: UUID
    scope_id: str
    title: str
    details: str
    proposer_id: str | None
    duration_minutes: int
    created_at: datetime
    closes_at: datetime
    status: ResolutionStatus
    counts: dict[str, int]
    total_ballots: int


class ResolutionListResponse(BaseModel):
    active: list[ResolutionResponse]
    past: list[ResolutionResponse]


class TallyResponse(BaseModel):
    resolution_id: UUID
    counts: dict[str, int]


class BallotDetailEntry(BaseModel):
    member_id: str
    member_name: str
    option: str
    represented_by_name: str


class BallotDetailResponse(BaseModel):
    resolution_id: UUID
    status: ResolutionStatus
    details: list[BallotDetailEntry]


class MemberResponse(BaseModel):
    id: str
    name: str


class MemberListResponse(BaseModel):
    members: list[MemberResponse]

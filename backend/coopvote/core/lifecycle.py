"""Lifecycle Controller — derives Open/Closed from creation time and duration.

Invariants:
    - Open iff now < created_at + duration_minutes * 60s (strict)
    - Status is never stored; every caller goes through resolution_status()
    - Naive datetimes (SQLite read-back) are interpreted as UTC
    - Pure functions — no IO, clock passed in by the shell

Design Decisions:
    - Structural ResolutionTimes protocol: works for ORM rows and test doubles alike
    - require_open raises instead of returning an error dict: callers are services,
      not tool dispatchers, and the global handler maps the exception
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Protocol, TypeVar
from uuid import UUID

from coopvote.core.domain_types import ResolutionStatus
from coopvote.core.errors import ErrorContext, ResolutionClosedError


class ResolutionTimes(Protocol):
    id: UUID
    created_at: datetime
    duration_minutes: int


R = TypeVar("R", bound=ResolutionTimes)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def closes_at(resolution: ResolutionTimes) -> datetime:
    """Instant at which voting ends."""
    return as_utc(resolution.created_at) + timedelta(
        minutes=resolution.duration_minutes,
    )


def resolution_status(
    resolution: ResolutionTimes, now: datetime,
) -> ResolutionStatus:
    if as_utc(now) < closes_at(resolution):
        return ResolutionStatus.OPEN
    return ResolutionStatus.CLOSED


def is_open(resolution: ResolutionTimes, now: datetime) -> bool:
    return resolution_status(resolution, now) is ResolutionStatus.OPEN


def require_open(resolution: ResolutionTimes, now: datetime) -> None:
    """Gate for every mutation except creation and deletion."""
    if not is_open(resolution, now):
        raise ResolutionClosedError(
            str(resolution.id),
            context=ErrorContext(resolution_id=str(resolution.id)),
        )


def partition(
    resolutions: Iterable[R], now: datetime,
) -> tuple[list[R], list[R]]:
    """Split into (active, past), preserving input order."""
    active: list[R] = []
    past: list[R] = []
    for resolution in resolutions:
        (active if is_open(resolution, now) else past).append(resolution)
    return active, past

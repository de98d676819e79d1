"""Resolution Store — scoped persistence and atomic mutation of Resolution rows.

Invariants:
    - Every scoped read/update/delete filters on scope_id; a mismatch is NotFound
    - mutate() is the only write path for existing rows: load fresh, check Open,
      apply, commit with version check; retry on a lost race
    - A failed attempt is rolled back completely before the next one starts
    - Creation and deletion skip the lifecycle gate

Design Decisions:
    - Optimistic locking (version_id_col) over SELECT ... FOR UPDATE: contention is
      per resolution and short-lived, and SQLite test runs behave the same way
    - populate_existing on every load: the identity map must never hand back a
      stale copy after a rollback
    - Bounded retries surface ConcurrencyError with retry_after_ms for the client
    - Jittered exponential backoff between attempts, capped at retry_after_ms, so
      contending writers spread out instead of retrying in lockstep
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import Callable, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from coopvote.core.domain_types import MemberId, ScopeId
from coopvote.core.errors import (
    ConcurrencyError, ErrorContext, ResourceNotFoundError,
)
from coopvote.core.lifecycle import partition, require_open
from coopvote.models.resolution import Resolution

logger = logging.getLogger(__name__)

T = TypeVar("T")

EDITABLE_FIELDS = frozenset(
    {"title", "details", "duration_minutes", "proposer_id"},
)

RETRY_BASE_DELAY_MS = 10


class ResolutionStore:
    """Persistent collection of resolutions, isolated per cooperative."""

    def __init__(
        self, db: AsyncSession, max_retries: int = 3, retry_after_ms: int = 200,
    ):
        self.db = db
        self.max_retries = max_retries
        self.retry_after_ms = retry_after_ms

    async def create(
        self,
        scope_id: ScopeId,
        title: str,
        details: str,
        duration_minutes: int,
        proposer_id: MemberId | None,
        now: datetime,
    ) -> Resolution:
        resolution = Resolution(
            scope_id=scope_id,
            title=title,
            details=details,
            duration_minutes=duration_minutes,
            proposer_id=proposer_id,
            created_at=now,
            ballots=[],
        )
        self.db.add(resolution)
        await self.db.commit()
        await self.db.refresh(resolution)
        logger.info(
            f"Created resolution '{title}'",
            extra={"resolution_id": str(resolution.id), "scope_id": scope_id},
        )
        return resolution

    async def get(self, resolution_id: UUID) -> Resolution | None:
        result = await self.db.execute(
            select(Resolution)
            .where(Resolution.id == resolution_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def get_scoped(
        self, resolution_id: UUID, scope_id: ScopeId,
    ) -> Resolution:
        """Get resolution or raise NotFound — also for another scope's resolution."""
        resolution = await self.get(resolution_id)
        if resolution is None or resolution.scope_id != scope_id:
            raise ResourceNotFoundError(
                "Resolution", str(resolution_id),
                context=ErrorContext(
                    resolution_id=str(resolution_id), scope_id=scope_id,
                ),
            )
        return resolution

    async def list_by_scope(
        self, scope_id: ScopeId, now: datetime,
    ) -> tuple[list[Resolution], list[Resolution]]:
        """(active, past) for the scope, newest first in each list."""
        result = await self.db.execute(
            select(Resolution)
            .where(Resolution.scope_id == scope_id)
            .order_by(Resolution.created_at.desc()),
        )
        return partition(result.scalars().all(), now)

    async def update(
        self,
        resolution_id: UUID,
        scope_id: ScopeId,
        fields: dict,
        now: datetime,
    ) -> Resolution:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

        def apply(resolution: Resolution) -> None:
            for name, value in fields.items():
                setattr(resolution, name, value)

        resolution, _ = await self.mutate(resolution_id, scope_id, apply, now)
        logger.info(
            "Updated resolution",
            extra={"resolution_id": str(resolution_id), "scope_id": scope_id},
        )
        return resolution

    async def delete(self, resolution_id: UUID, scope_id: ScopeId) -> bool:
        result = await self.db.execute(
            delete(Resolution)
            .where(Resolution.id == resolution_id)
            .where(Resolution.scope_id == scope_id),
        )
        await self.db.commit()
        deleted = (result.rowcount or 0) > 0
        if deleted:
            logger.info(
                "Deleted resolution",
                extra={"resolution_id": str(resolution_id), "scope_id": scope_id},
            )
        return deleted

    async def mutate(
        self,
        resolution_id: UUID,
        scope_id: ScopeId,
        apply: Callable[[Resolution], T],
        now: datetime,
    ) -> tuple[Resolution, T]:
        """Atomically apply a change to an Open resolution.

        apply receives a freshly loaded row and must be safe to run again:
        after a version conflict the row is reloaded and apply re-runs on it.
        """
        for attempt in range(self.max_retries + 1):
            resolution = await self._load_for_update(resolution_id, scope_id)
            require_open(resolution, now)
            outcome = apply(resolution)
            try:
                await self.db.commit()
            except StaleDataError:
                await self.db.rollback()
                if attempt >= self.max_retries:
                    break
                delay = self._backoff(attempt)
                logger.warning(
                    f"Resolution changed concurrently, retrying in {delay}ms",
                    extra={
                        "resolution_id": str(resolution_id),
                        "attempt": attempt + 1,
                    },
                )
                await asyncio.sleep(delay / 1000)
                continue
            return resolution, outcome

        logger.error(
            "Gave up updating resolution after concurrent modifications",
            extra={"resolution_id": str(resolution_id), "scope_id": scope_id},
        )
        raise ConcurrencyError(
            "Resolution is being modified by other requests, try again",
            context=ErrorContext(
                resolution_id=str(resolution_id),
                scope_id=scope_id,
                retry_after_ms=self.retry_after_ms,
            ),
        )

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter, capped at retry_after_ms."""
        delay = min(self.retry_after_ms, (2 ** attempt) * RETRY_BASE_DELAY_MS)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    async def _load_for_update(
        self, resolution_id: UUID, scope_id: ScopeId,
    ) -> Resolution:
        return await self.get_scoped(resolution_id, scope_id)

"""Delegation Resolver — validates proxy targets and reconciles proxy ballots.

Invariants:
    - check_delegate runs BEFORE any mutation; raising leaves the ballot set untouched
    - A delegate is a member of the resolution's scope and not an administrator
    - A member never delegates to themselves
    - reconcile_proxy keeps at most one proxy ballot per delegator: re-delegating
      moves the entry, revoking removes it, same delegate updates in place

Design Decisions:
    - Directory lookup stays in the shell (voting_service); check_delegate receives
      the looked-up DirectoryMember so the rules remain pure and testable
    - Unknown delegate and cross-scope delegate produce the same error: the caller
      learns nothing about members of other cooperatives
"""

from dataclasses import replace
from datetime import datetime

from coopvote.core.ballot_set import Ballot, BallotSet, proxy_key
from coopvote.core.domain_types import MemberId, ScopeId, VoteOption
from coopvote.core.errors import (
    ErrorContext, IneligibleDelegateError, SelfDelegationError,
)
from coopvote.core.repository_protocols import DirectoryMember


def check_delegate(
    caller_id: MemberId,
    delegate_to: MemberId | None,
    delegate: DirectoryMember | None,
    scope_id: ScopeId,
) -> None:
    """Raise if delegate_to cannot represent caller_id in scope_id."""
    if delegate_to is None:
        return
    context = ErrorContext(scope_id=scope_id, member_id=caller_id)
    if delegate_to == caller_id:
        raise SelfDelegationError(context)
    if (
        delegate is None
        or delegate.id != delegate_to
        or delegate.scope_id != scope_id
        or delegate.role.is_administrator
    ):
        raise IneligibleDelegateError(delegate_to, context)


def reconcile_proxy(
    ballots: BallotSet,
    caller_id: MemberId,
    option: VoteOption,
    delegate_to: MemberId | None,
    now: datetime,
) -> None:
    """Bring the caller's proxy ballot in line with the requested delegation."""
    existing = ballots.proxy_of(caller_id)

    if delegate_to is None:
        if existing is not None:
            ballots.remove(proxy_key(caller_id))
        return

    if existing is not None and existing.voter_id == delegate_to:
        ballots.put(replace(existing, option=option, voted_at=now))
        return

    # Delegate changed (or first delegation): move the entry to the end
    ballots.remove(proxy_key(caller_id))
    ballots.put(Ballot(
        voter_id=delegate_to,
        option=option,
        voted_at=now,
        delegated_by=caller_id,
    ))

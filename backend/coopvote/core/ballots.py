"""Ballot Upsert Engine — applies one member's vote request to a ballot set.

Invariants:
    - Direct ballot: updated in place if present, appended otherwise
    - Proxy ballot: reconciled by delegation.reconcile_proxy (move / update / revoke)
    - Direct stance and delegated stance are independent entries per caller
    - apply_vote mutates only the BallotSet it is given; persistence is the shell's job

Design Decisions:
    - Pure and idempotent per attempt: the store re-runs apply_vote on a freshly
      loaded set after an optimistic-lock conflict
"""

from dataclasses import replace
from datetime import datetime

from coopvote.core.ballot_set import Ballot, BallotSet
from coopvote.core.delegation import reconcile_proxy
from coopvote.core.domain_types import MemberId, VoteOption


def upsert_direct(
    ballots: BallotSet, caller_id: MemberId, option: VoteOption, now: datetime,
) -> Ballot:
    existing = ballots.direct(caller_id)
    if existing is not None:
        ballot = replace(existing, option=option, voted_at=now)
    else:
        ballot = Ballot(voter_id=caller_id, option=option, voted_at=now)
    ballots.put(ballot)
    return ballot


def apply_vote(
    ballots: BallotSet,
    caller_id: MemberId,
    option: VoteOption,
    delegate_to: MemberId | None,
    now: datetime,
) -> BallotSet:
    """Record caller's own ballot, then align their proxy ballot. Returns ballots."""
    upsert_direct(ballots, caller_id, option, now)
    reconcile_proxy(ballots, caller_id, option, delegate_to, now)
    return ballots

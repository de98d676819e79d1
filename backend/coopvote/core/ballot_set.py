"""Ballot Set — keyed, order-stable collection of a resolution's ballots.

Invariants:
    - Direct ballots keyed by ("direct", voter_id): one direct ballot per member
    - Proxy ballots keyed by ("proxy", delegated_by): one delegation per member
    - delegated_by never equals voter_id (enforced on construction)
    - Iteration order is insertion order; replacing a key keeps its position,
      removing and re-adding moves it to the end

Design Decisions:
    - dict over list scan: O(1) lookup for both upsert paths while keeping a
      stable output order (dicts are insertion-ordered)
    - Ballot is frozen: updates go through put(replace(...)) so the set stays
      the single owner of position
    - Rows are plain JSON dicts: the whole set is persisted as one column value
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, Literal

from coopvote.core.domain_types import MemberId, VoteOption
from coopvote.core.lifecycle import as_utc


BallotKey = tuple[Literal["direct", "proxy"], str]


@dataclass(frozen=True)
class Ballot:
    """One member's effective choice on a resolution."""
    voter_id: MemberId
    option: VoteOption
    voted_at: datetime
    delegated_by: MemberId | None = None

    def __post_init__(self):
        if self.delegated_by is not None and self.delegated_by == self.voter_id:
            raise ValueError("a ballot cannot be delegated by its own voter")

    @property
    def is_proxy(self) -> bool:
        return self.delegated_by is not None

    @property
    def key(self) -> BallotKey:
        if self.delegated_by is not None:
            return ("proxy", self.delegated_by)
        return ("direct", self.voter_id)

    def to_row(self) -> dict:
        return {
            "voter_id": self.voter_id,
            "option": self.option.value,
            "voted_at": as_utc(self.voted_at).isoformat(),
            "delegated_by": self.delegated_by,
        }

    @classmethod
    def from_row(cls, row: dict) -> "Ballot":
        return cls(
            voter_id=MemberId(row["voter_id"]),
            option=VoteOption(row["option"]),
            voted_at=as_utc(datetime.fromisoformat(row["voted_at"])),
            delegated_by=(
                MemberId(row["delegated_by"]) if row.get("delegated_by") else None
            ),
        )


def direct_key(member_id: MemberId) -> BallotKey:
    return ("direct", member_id)


def proxy_key(delegator_id: MemberId) -> BallotKey:
    return ("proxy", delegator_id)


class BallotSet:
    """Ballots of one resolution, indexed by direct voter or delegator."""

    def __init__(self, ballots: Iterable[Ballot] = ()):
        self._ballots: dict[BallotKey, Ballot] = {}
        for ballot in ballots:
            self.put(ballot)

    @classmethod
    def from_rows(cls, rows: Iterable[dict] | None) -> "BallotSet":
        return cls(Ballot.from_row(row) for row in rows or ())

    def to_rows(self) -> list[dict]:
        return [ballot.to_row() for ballot in self]

    def __iter__(self) -> Iterator[Ballot]:
        return iter(list(self._ballots.values()))

    def __len__(self) -> int:
        return len(self._ballots)

    def direct(self, member_id: MemberId) -> Ballot | None:
        return self._ballots.get(direct_key(member_id))

    def proxy_of(self, delegator_id: MemberId) -> Ballot | None:
        """The proxy ballot delegator_id currently has out, if any."""
        return self._ballots.get(proxy_key(delegator_id))

    def put(self, ballot: Ballot) -> None:
        """Insert, or replace in place when the key already exists."""
        self._ballots[ballot.key] = ballot

    def remove(self, key: BallotKey) -> Ballot | None:
        return self._ballots.pop(key, None)

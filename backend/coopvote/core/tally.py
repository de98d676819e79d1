"""Tally Engine — vote counts and per-member voting detail.

Invariants:
    - counts() covers every ballot, direct and proxy: sum(counts) == len(ballots)
    - detail() has exactly one entry per eligible member, non-voters included
    - Non-voters report NO_VOTE with an empty representedByName
    - Entries ordered by surname, then given name

Design Decisions:
    - When several ballots name the same voter, the last one in set order wins
      (the set order is stable, so the result is deterministic)
    - Delegator names resolved from the roster; unknown delegators fall back to
      their id rather than failing the whole report
"""

from typing import Iterable

from coopvote.core.ballot_set import Ballot
from coopvote.core.domain_types import NO_VOTE, VoteOption
from coopvote.core.repository_protocols import DirectoryMember


def counts(ballots: Iterable[Ballot]) -> dict[str, int]:
    result = {option.value: 0 for option in VoteOption}
    for ballot in ballots:
        result[ballot.option.value] += 1
    return result


def _sort_key(member: DirectoryMember) -> tuple[str, str]:
    return (member.last_name.casefold(), member.first_name.casefold())


def detail(
    ballots: Iterable[Ballot],
    scope_members: Iterable[DirectoryMember],
    names: dict[str, str] | None = None,
) -> list[dict]:
    """Per-member report for a resolution. Pure, no IO.

    names maps member id -> display name for delegators; defaults to the
    display names of scope_members.
    """
    members = sorted(
        (m for m in scope_members if m.is_eligible), key=_sort_key,
    )
    lookup = dict(names) if names is not None else {}
    for member in members:
        lookup.setdefault(member.id, member.display_name)

    by_voter: dict[str, Ballot] = {}
    for ballot in ballots:
        by_voter[ballot.voter_id] = ballot

    entries = []
    for member in members:
        ballot = by_voter.get(member.id)
        if ballot is None:
            entries.append({
                "member_id": member.id,
                "member_name": member.display_name,
                "option": NO_VOTE,
                "represented_by_name": "",
            })
            continue
        represented_by = ""
        if ballot.delegated_by is not None:
            represented_by = lookup.get(ballot.delegated_by, ballot.delegated_by)
        entries.append({
            "member_id": member.id,
            "member_name": member.display_name,
            "option": ballot.option.value,
            "represented_by_name": represented_by,
        })
    return entries

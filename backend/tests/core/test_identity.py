"""Caller Identity — tests for name splitting and capability predicates."""

from coopvote.core.domain_types import MemberId, MemberRole, ScopeId
from coopvote.core.identity import (
    IdentityContext, can_cast_ballot, can_manage_resolutions, split_display_name,
)

SCOPE = ScopeId("coop-1")


def _caller(role=MemberRole.MEMBER, scope=SCOPE, name="Ana Maria Suarez"):
    return IdentityContext(
        member_id=MemberId("m-ana"), display_name=name, scope_id=scope, role=role,
    )


def test_split_display_name_on_first_space():
    assert split_display_name("Ana Maria Suarez") == ("Ana", "Maria Suarez")
    assert split_display_name("Ana") == ("Ana", "")
    assert split_display_name("  Ana  Suarez ") == ("Ana", "Suarez")


def test_identity_exposes_name_parts():
    caller = _caller()
    assert caller.first_name == "Ana"
    assert caller.last_name == "Maria Suarez"


def test_admin_manages_own_scope_only():
    admin = _caller(MemberRole.ADMIN)
    assert can_manage_resolutions(SCOPE, admin)
    assert not can_manage_resolutions(ScopeId("coop-2"), admin)


def test_superuser_counts_as_admin():
    assert can_manage_resolutions(SCOPE, _caller(MemberRole.SUPERUSER))


def test_member_cannot_manage():
    assert not can_manage_resolutions(SCOPE, _caller())


def test_only_plain_members_cast_ballots():
    assert can_cast_ballot(SCOPE, _caller())
    assert not can_cast_ballot(SCOPE, _caller(MemberRole.ADMIN))
    assert not can_cast_ballot(ScopeId("coop-2"), _caller())

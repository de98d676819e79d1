"""Ballot Detail — per-member report over HTTP.

Invariants:
    - One entry per eligible member of the scope, non-voters as NO VOTO
    - Administrators never listed
    - Available for open and closed resolutions alike
"""

from coopvote.core.domain_types import NO_VOTE


async def test_three_members_one_voter(client, as_member, create_resolution, seed_members):
    rid = (await create_resolution())["id"]
    await client.post(
        f"/api/v1/resolutions/{rid}/votes",
        json={"option": "Yes"}, headers=as_member("m-ana"),
    )

    res = await client.get(
        f"/api/v1/resolutions/{rid}/detail", headers=as_member("m-bruno"),
    )

    assert res.status_code == 200
    details = res.json()["details"]
    assert len(details) == 3
    assert [d["option"] for d in details].count(NO_VOTE) == 2
    assert [d["member_name"] for d in details] == [
        "Bruno Acosta", "Carla Mendez", "Ana Suarez",
    ]


async def test_detail_available_after_close(
    client, as_member, create_resolution, seed_members, clock,
):
    rid = (await create_resolution(duration_minutes=5))["id"]
    clock.advance(minutes=10)

    res = await client.get(
        f"/api/v1/resolutions/{rid}/detail", headers=as_member("m-ana"),
    )
    assert res.status_code == 200
    assert res.json()["status"] == "closed"


async def test_detail_of_other_scope_is_not_found(
    client, as_member, create_resolution, seed_members,
):
    rid = (await create_resolution())["id"]
    res = await client.get(
        f"/api/v1/resolutions/{rid}/detail", headers=as_member("m-eva"),
    )
    assert res.status_code == 404

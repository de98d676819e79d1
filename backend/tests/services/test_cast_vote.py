"""Cast Vote — direct and proxy ballots over HTTP.

Invariants:
    - Response is the live tally after the ballot is applied
    - Repeated votes update, re-delegation moves, revocation removes
    - Closed resolution -> 409 and ballots unchanged
    - Self-delegation / ineligible delegate -> 409 with no side effects
    - Administrators and other cooperatives cannot vote (403 / 404)
"""

from uuid import UUID

from sqlalchemy import select

from coopvote.models.resolution import Resolution


async def _vote(client, as_member, resolution_id, member, option, delegate_to=None):
    payload = {"option": option}
    if delegate_to is not None:
        payload["delegate_to"] = delegate_to
    return await client.post(
        f"/api/v1/resolutions/{resolution_id}/votes",
        json=payload, headers=as_member(member),
    )


async def _stored_ballots(test_session_factory, resolution_id) -> list[dict]:
    async with test_session_factory() as db:
        result = await db.execute(
            select(Resolution).where(Resolution.id == UUID(resolution_id)),
        )
        return result.scalar_one().ballots


async def test_adopt_budget_scenario(client, as_member, create_resolution, seed_members, clock):
    created = await create_resolution("Adopt budget", 60)
    rid = created["id"]

    res = await _vote(client, as_member, rid, "m-ana", "Yes")
    assert res.status_code == 200
    assert res.json()["counts"] == {"Yes": 1, "No": 0, "Abstain": 0}

    res = await _vote(client, as_member, rid, "m-bruno", "No", delegate_to="m-carla")
    assert res.status_code == 200
    # Bruno's own ballot and the proxy ballot held by Carla
    assert res.json()["counts"]["Yes"] == 1
    assert res.json()["counts"]["No"] == 2

    detail = await client.get(
        f"/api/v1/resolutions/{rid}/detail", headers=as_member("m-ana"),
    )
    by_id = {e["member_id"]: e for e in detail.json()["details"]}
    assert by_id["m-carla"]["option"] == "No"
    assert by_id["m-carla"]["represented_by_name"] == "Bruno Acosta"

    clock.advance(minutes=61)
    late = await _vote(client, as_member, rid, "m-carla", "Abstain")
    assert late.status_code == 409
    assert late.json()["error"]["code"] == "RESOLUTION_CLOSED"


async def test_repeated_votes_keep_one_direct_ballot(
    client, as_member, create_resolution, test_session_factory,
):
    rid = (await create_resolution())["id"]
    for option in ("Yes", "No", "Abstain", "No"):
        res = await _vote(client, as_member, rid, "m-ana", option)
        assert res.status_code == 200

    assert res.json()["counts"] == {"Yes": 0, "No": 1, "Abstain": 0}
    ballots = await _stored_ballots(test_session_factory, rid)
    direct = [b for b in ballots if b["voter_id"] == "m-ana" and not b["delegated_by"]]
    assert len(direct) == 1


async def test_redelegation_moves_proxy_ballot(
    client, as_member, create_resolution, seed_members, test_session_factory,
):
    rid = (await create_resolution())["id"]
    await _vote(client, as_member, rid, "m-ana", "Yes", delegate_to="m-bruno")
    await _vote(client, as_member, rid, "m-ana", "Yes", delegate_to="m-carla")

    ballots = await _stored_ballots(test_session_factory, rid)
    proxies = [b for b in ballots if b["delegated_by"] == "m-ana"]
    assert len(proxies) == 1
    assert proxies[0]["voter_id"] == "m-carla"


async def test_revoking_delegation_drops_one_vote(
    client, as_member, create_resolution, seed_members,
):
    rid = (await create_resolution())["id"]
    first = await _vote(client, as_member, rid, "m-ana", "Abstain", delegate_to="m-bruno")
    assert first.json()["counts"]["Abstain"] == 2

    revoked = await _vote(client, as_member, rid, "m-ana", "Abstain")
    assert revoked.json()["counts"] == {"Yes": 0, "No": 0, "Abstain": 1}


async def test_vote_on_closed_resolution_leaves_ballots_unchanged(
    client, as_member, create_resolution, clock, test_session_factory,
):
    rid = (await create_resolution(duration_minutes=15))["id"]
    await _vote(client, as_member, rid, "m-ana", "Yes")
    before = await _stored_ballots(test_session_factory, rid)

    clock.advance(minutes=15)
    res = await _vote(client, as_member, rid, "m-ana", "No")

    assert res.status_code == 409
    assert await _stored_ballots(test_session_factory, rid) == before


async def test_self_delegation_rejected_without_side_effects(
    client, as_member, create_resolution, test_session_factory,
):
    rid = (await create_resolution())["id"]
    res = await _vote(client, as_member, rid, "m-ana", "Yes", delegate_to="m-ana")

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "SELF_DELEGATION"
    assert await _stored_ballots(test_session_factory, rid) == []


async def test_admin_delegate_rejected(client, as_member, create_resolution, seed_members):
    rid = (await create_resolution())["id"]
    res = await _vote(client, as_member, rid, "m-ana", "Yes", delegate_to="adm-1")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "INELIGIBLE_DELEGATE"


async def test_delegate_from_other_scope_rejected(
    client, as_member, create_resolution, seed_members,
):
    rid = (await create_resolution())["id"]
    res = await _vote(client, as_member, rid, "m-ana", "Yes", delegate_to="m-eva")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "INELIGIBLE_DELEGATE"


async def test_unknown_delegate_rejected(client, as_member, create_resolution):
    rid = (await create_resolution())["id"]
    res = await _vote(client, as_member, rid, "m-ana", "Yes", delegate_to="m-nobody")
    assert res.status_code == 409


async def test_invalid_option_is_validation_error(client, as_member, create_resolution):
    rid = (await create_resolution())["id"]
    res = await _vote(client, as_member, rid, "m-ana", "Sí")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_admin_cannot_vote(client, as_member, create_resolution):
    rid = (await create_resolution())["id"]
    res = await _vote(client, as_member, rid, "adm-1", "Yes")
    assert res.status_code == 403


async def test_member_of_other_scope_gets_not_found(client, as_member, create_resolution):
    rid = (await create_resolution())["id"]
    res = await _vote(client, as_member, rid, "m-eva", "Yes")
    assert res.status_code == 404


async def test_counts_match_ballot_count(
    client, as_member, create_resolution, seed_members, test_session_factory,
):
    rid = (await create_resolution())["id"]
    await _vote(client, as_member, rid, "m-ana", "Yes", delegate_to="m-bruno")
    await _vote(client, as_member, rid, "m-bruno", "No", delegate_to="m-carla")
    res = await _vote(client, as_member, rid, "m-carla", "Abstain")

    tally = res.json()["counts"]
    ballots = await _stored_ballots(test_session_factory, rid)
    assert sum(tally.values()) == len(ballots) == 5


async def test_listing_reflects_votes(client, as_member, create_resolution):
    rid = (await create_resolution())["id"]
    await _vote(client, as_member, rid, "m-ana", "Yes")

    body = (await client.get("/api/v1/resolutions", headers=as_member("m-bruno"))).json()
    assert body["active"][0]["counts"]["Yes"] == 1
    assert body["active"][0]["total_ballots"] == 1

"""Tests for the resolution strategy chain with mocked directory responses."""

import json
import pytest
import httpx
import respx

from ethoslink.config import EngineConfig
from ethoslink.directory.client import DirectoryClient
from ethoslink.directory.strategies import ResolutionChain
from ethoslink.identity import IdentityKind, normalize


ADDRESS = "0x9876543210fedcba9876543210fedcba98765432"


def _chain():
    return ResolutionChain(DirectoryClient(EngineConfig()))


# ── Planning ──

def test_plan_address_uses_address_lookup_only():
    plan = _chain().plan(normalize(ADDRESS))
    assert [s.kind for s in plan] == [IdentityKind.ADDRESS]


def test_plan_ens_single_strategy():
    plan = _chain().plan(normalize("vitalik.eth"))
    assert [s.name for s in plan] == ["ens"]


def test_plan_unknown_username_trial_order():
    plan = _chain().plan(normalize("cookedzera"))
    assert [s.kind for s in plan] == [
        IdentityKind.TWITTER_USERNAME,
        IdentityKind.FARCASTER_USERNAME,
        IdentityKind.ADDRESS,
    ]


def test_plan_unknown_numeric_adds_id_lookups():
    plan = _chain().plan(normalize("123456789"))
    assert [s.kind for s in plan] == [
        IdentityKind.TWITTER_USERNAME,
        IdentityKind.FARCASTER_USERNAME,
        IdentityKind.ADDRESS,
        IdentityKind.PROFILE_ID,
        IdentityKind.FARCASTER_ID,
        IdentityKind.TELEGRAM_ID,
    ]


def test_plan_discord_shaped_number():
    kinds = [s.kind for s in _chain().plan(normalize("123456789012345678"))]
    assert IdentityKind.DISCORD_ID in kinds
    assert IdentityKind.TELEGRAM_ID not in kinds


def test_plan_empty_input():
    assert _chain().plan(normalize("   ")) == []


# ── Resolution ──

@pytest.mark.asyncio
async def test_address_hits_address_endpoint_only(api, directory_user):
    chain = _chain()

    with respx.mock(assert_all_called=False) as router:
        by_address = router.post(f"{api}/users/by/address").mock(
            return_value=httpx.Response(200, json=[directory_user(userkeys=[f"address:{ADDRESS}"])])
        )
        other = router.route().mock(return_value=httpx.Response(500))

        record = await chain.resolve(normalize(ADDRESS))

    assert by_address.call_count == 1
    assert not other.called
    assert record.primary_key == f"address:{ADDRESS}"


@pytest.mark.asyncio
async def test_first_success_short_circuits(api, directory_user):
    chain = _chain()

    with respx.mock(assert_all_called=False) as router:
        x = router.post(f"{api}/users/by/x").mock(
            return_value=httpx.Response(200, json=[directory_user()])
        )
        farcaster = router.post(f"{api}/users/by/farcaster/usernames").mock(
            return_value=httpx.Response(200, json={"users": []})
        )

        record = await chain.resolve(normalize("cookedzera"))

    assert x.called
    assert not farcaster.called
    assert record.score == 1373
    assert record.review_count == 9
    assert record.vouch_count == 2


@pytest.mark.asyncio
async def test_failures_fall_through_to_next_strategy(api, directory_user):
    chain = _chain()

    with respx.mock(assert_all_called=False) as router:
        router.post(f"{api}/users/by/x").mock(return_value=httpx.Response(500, text="boom"))
        router.post(f"{api}/users/by/farcaster/usernames").mock(
            return_value=httpx.Response(200, json={
                "users": [{"user": directory_user(score=700), "username": "cookedzera"}],
                "notFoundUsernames": [],
                "errorUsernames": [],
            })
        )

        record = await chain.resolve(normalize("cookedzera"))

    assert record.score == 700


@pytest.mark.asyncio
async def test_transport_error_is_a_miss(api, directory_user):
    chain = _chain()

    with respx.mock(assert_all_called=False) as router:
        router.post(f"{api}/users/by/x").mock(side_effect=httpx.ConnectError("down"))
        router.post(f"{api}/users/by/farcaster/usernames").mock(
            return_value=httpx.Response(200, json={"users": "not-a-list"})
        )
        router.post(f"{api}/users/by/address").mock(
            return_value=httpx.Response(200, json=[directory_user(score=12)])
        )

        record = await chain.resolve(normalize("cookedzera"))

    assert record.score == 12


@pytest.mark.asyncio
async def test_first_element_is_canonical(api, directory_user):
    chain = _chain()

    with respx.mock(assert_all_called=False) as router:
        router.post(f"{api}/users/by/x").mock(
            return_value=httpx.Response(200, json=[
                directory_user(score=1, userkeys=["profileId:1"]),
                directory_user(score=2, userkeys=["profileId:2"]),
            ])
        )

        record = await chain.resolve(normalize("@someone"))

    assert record.primary_key == "profileId:1"
    assert record.score == 1


@pytest.mark.asyncio
async def test_exhausted_chain_returns_none(api):
    chain = _chain()

    with respx.mock(assert_all_called=False) as router:
        router.route().mock(return_value=httpx.Response(404, json={"error": "not found"}))

        record = await chain.resolve_identifier("nobody-at-all")

    assert record is None


@pytest.mark.asyncio
async def test_profile_id_sends_integer(api, directory_user):
    chain = _chain()

    with respx.mock as router:
        route = router.post(f"{api}/users/by/profile-id").mock(
            return_value=httpx.Response(200, json=[directory_user()])
        )

        record = await chain.resolve(normalize("profileId:10"))

    assert json.loads(route.calls.last.request.content) == {"profileIds": [10]}
    assert record.profile_id == 10

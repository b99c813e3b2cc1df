from __future__ import annotations

import asyncio
from datetime import date, timedelta

import pytest

from loveconnect.routers.matches import watch_disconnect
from loveconnect.services.user_profile_service import get_user_store


def _dob(age: int) -> str:
    return (date.today() - timedelta(days=int(age * 365.25) + 30)).isoformat()


async def _register(client, email: str, gender: str, interested_in: list[str], age: int) -> tuple[str, str]:
    resp = await client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": "Str0ngPass!",
            "firstName": email.split("@")[0].title(),
            "lastName": "Test",
            "dateOfBirth": _dob(age),
            "genderIdentity": {"myGender": gender, "interestedIn": interested_in},
        },
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["token"], body["profile"]["userId"]


async def _locate(client, token: str, lon: float, lat: float) -> None:
    resp = await client.put(
        "/api/users/me/location",
        headers={"Authorization": f"Bearer {token}"},
        json={"longitude": lon, "latitude": lat},
    )
    assert resp.status_code == 200, resp.text


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_nearby_search(memory_api_client) -> None:
    client = memory_api_client
    me, _ = await _register(client, "claire@example.com", "woman", ["man"], 30)
    near, near_id = await _register(client, "adam@example.com", "man", ["woman"], 28)
    old, _ = await _register(client, "bernard@example.com", "man", ["woman"], 40)
    far, _ = await _register(client, "cedric@example.com", "man", ["woman"], 28)
    picky, _ = await _register(client, "dan@example.com", "man", ["man"], 28)

    await _locate(client, me, 2.35, 48.85)
    for token in (near, old, picky):
        await _locate(client, token, 2.36, 48.86)
    await _locate(client, far, 10.0, 50.0)

    resp = await client.get(
        "/api/matches/nearby",
        headers=_auth(me),
        params={"maxDistance": 5000, "ageMin": 25, "ageMax": 35},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["count"] == 1
    candidate = body["candidates"][0]
    assert candidate["userId"] == near_id
    assert candidate["age"] == 28
    assert 0 < candidate["distance"] < 5000
    assert "email" not in candidate
    assert "passwordHash" not in candidate


@pytest.mark.asyncio
async def test_nearby_mood_filter(memory_api_client) -> None:
    client = memory_api_client
    me, _ = await _register(client, "claire@example.com", "woman", ["all"], 30)
    zen, zen_id = await _register(client, "zoe@example.com", "woman", ["woman"], 29)
    chill, _ = await _register(client, "chloe@example.com", "woman", ["all"], 29)
    for token in (me, zen, chill):
        await _locate(client, token, 2.35, 48.85)
    await client.put("/api/users/me/mood", headers=_auth(zen), json={"mood": "zen"})
    await client.put("/api/users/me/mood", headers=_auth(chill), json={"mood": "chill"})

    resp = await client.get("/api/matches/nearby", headers=_auth(me), params={"mood": "zen"})
    assert resp.status_code == 200, resp.text
    assert [c["userId"] for c in resp.json()["candidates"]] == [zen_id]
    assert resp.json()["candidates"][0]["currentMood"] == "zen"


@pytest.mark.asyncio
async def test_nearby_without_location(memory_api_client) -> None:
    me, _ = await _register(memory_api_client, "claire@example.com", "woman", ["man"], 30)
    resp = await memory_api_client.get("/api/matches/nearby", headers=_auth(me))
    assert resp.status_code == 409
    assert resp.json()["error"] == "invalid_query_state"


@pytest.mark.asyncio
async def test_nearby_inverted_age_range(memory_api_client) -> None:
    me, _ = await _register(memory_api_client, "claire@example.com", "woman", ["man"], 30)
    await _locate(memory_api_client, me, 2.35, 48.85)
    resp = await memory_api_client.get(
        "/api/matches/nearby", headers=_auth(me), params={"ageMin": 40, "ageMax": 30}
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "invalid_range"


@pytest.mark.asyncio
async def test_nearby_excludes_banned_users(memory_api_client) -> None:
    client = memory_api_client
    me, _ = await _register(client, "claire@example.com", "woman", ["man"], 30)
    other, other_id = await _register(client, "adam@example.com", "man", ["woman"], 28)
    await _locate(client, me, 2.35, 48.85)
    await _locate(client, other, 2.36, 48.86)
    await get_user_store().update(other_id, {"isBanned": True})

    resp = await client.get("/api/matches/nearby", headers=_auth(me))
    assert resp.status_code == 200
    assert resp.json()["candidates"] == []


async def _exercise_like_flow(client) -> None:
    alice, alice_id = await _register(client, "alice@example.com", "woman", ["man"], 30)
    bob, bob_id = await _register(client, "bob@example.com", "man", ["woman"], 31)

    first = await client.post("/api/matches/like", headers=_auth(alice), json={"targetUserId": bob_id})
    assert first.status_code == 200, first.text
    assert first.json()["isMatch"] is False

    received = await client.get("/api/matches/likes-received", headers=_auth(bob))
    assert received.status_code == 200
    assert [entry["profile"]["userId"] for entry in received.json()["likedMe"]] == [alice_id]

    second = await client.post("/api/matches/like", headers=_auth(bob), json={"targetUserId": alice_id})
    assert second.json()["isMatch"] is True

    matches = await client.get("/api/matches", headers=_auth(alice))
    assert matches.status_code == 200
    assert [entry["profile"]["userId"] for entry in matches.json()["matches"]] == [bob_id]

    received_after = await client.get("/api/matches/likes-received", headers=_auth(bob))
    assert received_after.json()["likedMe"] == []

    removed = await client.delete(f"/api/matches/like/{bob_id}", headers=_auth(alice))
    assert removed.json()["removed"] is True
    assert (await client.get("/api/matches", headers=_auth(alice))).json()["matches"] == []


@pytest.mark.asyncio
async def test_like_flow_creates_match(api_client) -> None:
    await _exercise_like_flow(api_client)


@pytest.mark.asyncio
async def test_like_flow_on_memory_backend(memory_api_client) -> None:
    await _exercise_like_flow(memory_api_client)


@pytest.mark.asyncio
async def test_repeated_like_is_idempotent(memory_api_client) -> None:
    alice, _ = await _register(memory_api_client, "alice@example.com", "woman", ["man"], 30)
    bob, bob_id = await _register(memory_api_client, "bob@example.com", "man", ["woman"], 31)
    for _ in range(2):
        resp = await memory_api_client.post(
            "/api/matches/like", headers=_auth(alice), json={"targetUserId": bob_id}
        )
        assert resp.status_code == 200
    received = await memory_api_client.get("/api/matches/likes-received", headers=_auth(bob))
    assert len(received.json()["likedMe"]) == 1


@pytest.mark.asyncio
async def test_like_rejects_self_and_incompatible(api_client) -> None:
    alice, alice_id = await _register(api_client, "alice@example.com", "woman", ["man"], 30)
    _, carol_id = await _register(api_client, "carol@example.com", "woman", ["man"], 30)

    self_like = await api_client.post("/api/matches/like", headers=_auth(alice), json={"targetUserId": alice_id})
    assert self_like.status_code == 400

    incompatible = await api_client.post(
        "/api/matches/like", headers=_auth(alice), json={"targetUserId": carol_id}
    )
    assert incompatible.status_code == 404


class _ClientSession:
    def __init__(self, disconnect_after: int) -> None:
        self.polls = 0
        self._disconnect_after = disconnect_after

    async def is_disconnected(self) -> bool:
        self.polls += 1
        return self.polls >= self._disconnect_after


@pytest.mark.asyncio
async def test_disconnect_sets_cancel_event() -> None:
    session = _ClientSession(disconnect_after=3)
    cancel = asyncio.Event()

    await asyncio.wait_for(watch_disconnect(session, cancel, interval=0), timeout=1)

    assert cancel.is_set()
    assert session.polls == 3


@pytest.mark.asyncio
async def test_watcher_stops_once_search_finished() -> None:
    session = _ClientSession(disconnect_after=10_000)
    cancel = asyncio.Event()
    cancel.set()

    await asyncio.wait_for(watch_disconnect(session, cancel, interval=0), timeout=1)

    assert session.polls == 0

from __future__ import annotations

from datetime import date, timedelta

import pytest

from loveconnect.db import get_db
from loveconnect.db.collections import USERS_COLLECTION

PASSWORD = "Str0ngPass!"


def _signup_payload(email: str = "alice@example.com", **overrides) -> dict:
    payload = {
        "email": email,
        "password": PASSWORD,
        "firstName": "Alice",
        "lastName": "Martin",
        "dateOfBirth": "1995-03-10",
        "genderIdentity": {"myGender": "woman", "interestedIn": ["man"]},
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_register_and_login(api_client) -> None:
    resp = await api_client.post("/api/auth/register", json=_signup_payload())
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["token"]
    profile = body["profile"]
    assert profile["email"] == "alice@example.com"
    assert profile["isActive"] is True
    assert "passwordHash" not in profile
    assert profile["preferences"]["searchRadius"] == 50000

    stored = await get_db()[USERS_COLLECTION].find_one({"email": "alice@example.com"})
    assert stored is not None
    assert stored["passwordHash"] != PASSWORD
    assert stored["dateOfBirth"] == "1995-03-10"

    login = await api_client.post(
        "/api/auth/login", json={"email": "Alice@Example.com", "password": PASSWORD}
    )
    assert login.status_code == 200, login.text
    assert login.json()["profile"]["userId"] == profile["userId"]


@pytest.mark.asyncio
async def test_register_duplicate_email(api_client) -> None:
    first = await api_client.post("/api/auth/register", json=_signup_payload())
    assert first.status_code == 201
    second = await api_client.post("/api/auth/register", json=_signup_payload())
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_register_rejects_minors(api_client) -> None:
    too_young = (date.today() - timedelta(days=17 * 365)).isoformat()
    resp = await api_client.post("/api/auth/register", json=_signup_payload(dateOfBirth=too_young))
    assert resp.status_code == 400
    assert "age" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_register_rejects_weak_password(api_client) -> None:
    resp = await api_client.post("/api/auth/register", json=_signup_payload(password="alllowercase"))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_register_rejects_unknown_gender(api_client) -> None:
    resp = await api_client.post(
        "/api/auth/register",
        json=_signup_payload(genderIdentity={"myGender": "robot", "interestedIn": ["all"]}),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_failures(api_client) -> None:
    await api_client.post("/api/auth/register", json=_signup_payload())

    wrong = await api_client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "Wrong-pass1"}
    )
    assert wrong.status_code == 401

    missing = await api_client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_protected_routes_require_token(api_client) -> None:
    assert (await api_client.get("/api/users/me")).status_code == 401
    bad = await api_client.get("/api/users/me", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401

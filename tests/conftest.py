from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import date, timedelta
from pathlib import Path
import sys
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from loveconnect.config import get_settings
from loveconnect.db import close_mongo_connection, connect_to_mongo
from loveconnect.main import app
from loveconnect.models.user_profile import (
    AgeRange,
    GenderIdentity,
    GeoPoint,
    Preferences,
    UserProfileDocument,
)
from loveconnect.services.likes_service import get_like_store
from loveconnect.services.user_profile_service import get_user_store

TODAY = date(2026, 6, 15)
NOW_MS = 1_781_500_000_000


def dob_for_age(age: int, today: date = TODAY) -> date:
    """A birth date that puts the user mid-way through year ``age``."""
    return today - timedelta(days=int(age * 365.25) + 30)


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "loveconnect-test")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("USER_STORE_BACKEND", "mongo")
    monkeypatch.setenv("AUTH_RATE_LIMIT_MAX", "1000")
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("REDIS_PUBSUB_ENABLED", raising=False)
    monkeypatch.setattr("loveconnect.services.user_profile_service._rate_limiter", None)
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def make_user() -> Callable[..., UserProfileDocument]:
    def _make_user(
        user_id: str,
        *,
        gender: str = "man",
        interested_in: Optional[list[str]] = None,
        age: int = 28,
        lon_lat: Optional[tuple[float, float]] = (2.36, 48.86),
        is_active: bool = True,
        is_banned: bool = False,
        last_seen: int = 0,
        mood: Optional[str] = None,
        mood_updated_at: Optional[int] = None,
        search_radius: int = 5000,
        age_range: tuple[int, int] = (25, 35),
    ) -> UserProfileDocument:
        return UserProfileDocument(
            user_id=user_id,
            email=f"{user_id}@example.com",
            password_hash="hash",
            first_name=user_id.title(),
            last_name="Test",
            date_of_birth=dob_for_age(age),
            gender_identity=GenderIdentity(
                my_gender=gender,
                interested_in=["woman"] if interested_in is None else interested_in,
            ),
            location=GeoPoint.from_lon_lat(*lon_lat) if lon_lat else None,
            current_mood=mood,
            mood_updated_at=mood_updated_at,
            preferences=Preferences(
                search_radius=search_radius,
                age_range=AgeRange(min=age_range[0], max=age_range[1]),
            ),
            is_active=is_active,
            is_banned=is_banned,
            last_seen=last_seen,
            created_at=1,
            updated_at=1,
        )

    return _make_user


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("loveconnect.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def api_client(mongo_client: AsyncMongoMockClient) -> AsyncIterator[AsyncClient]:
    await connect_to_mongo()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    await close_mongo_connection()


@pytest_asyncio.fixture
async def memory_api_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncClient]:
    monkeypatch.setenv("USER_STORE_BACKEND", "memory")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    store = get_user_store()
    likes = get_like_store()
    store.clear()
    likes.clear()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    store.clear()
    likes.clear()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def now_ms() -> int:
    return NOW_MS

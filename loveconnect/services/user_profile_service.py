from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

import bcrypt
import jwt
from pydantic import ValidationError

from ..config import get_settings
from ..db import get_db
from ..matching.age import compute_age
from ..matching.mood import is_mood_fresh
from ..models.user_profile import (
    MAX_SIGNUP_AGE,
    MIN_SIGNUP_AGE,
    GeoPoint,
    LoginRequest,
    MoodEntry,
    MoodHistoryResponse,
    Mood,
    Preferences,
    PublicProfile,
    RegisterRequest,
    UserProfile,
    UserProfileDocument,
    UserProfilePatch,
)
from ..repositories import InMemoryUserStore, MongoUserStore, UserStore
from ..repositories.exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError

LOGGER = logging.getLogger("uvicorn.error")

_memory_store = InMemoryUserStore()


class RateLimiter:
    """Very small in-memory attempt counter for authentication flows."""

    def __init__(self, window_seconds: int, max_attempts: int) -> None:
        self._window = float(window_seconds)
        self._max_attempts = max_attempts
        self._state: Dict[str, Dict[str, float]] = {}

    def increment(self, key: str) -> bool:
        now = time.time()
        record = self._state.get(key)
        if not record or record.get("expires", 0) < now:
            record = {"count": 0.0, "expires": now + self._window}
        record["count"] = record.get("count", 0.0) + 1.0
        self._state[key] = record
        return record["count"] <= self._max_attempts

    def reset(self) -> None:
        self._state.clear()


_rate_limiter: Optional[RateLimiter] = None


def _get_rate_limiter(window: int, max_attempts: int) -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter(window, max_attempts)
    return _rate_limiter


class UserProfileService:
    """Account and profile orchestration on top of a ``UserStore``."""

    def __init__(
        self,
        store: UserStore,
        *,
        jwt_secret: str,
        token_ttl_seconds: int,
        rate_limiter: RateLimiter,
    ) -> None:
        self._store = store
        self._jwt_secret = jwt_secret
        self._token_ttl = token_ttl_seconds
        self._rate_limiter = rate_limiter

    @property
    def store(self) -> UserStore:
        return self._store

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def _generate_user_id() -> str:
        return f"u_{int(time.time()*1000)}_{os.urandom(4).hex()}"

    @staticmethod
    def hash_password(raw: str) -> str:
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(raw.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(raw: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    @staticmethod
    def password_strength(password: str) -> bool:
        score = 0
        if any(c.islower() for c in password):
            score += 1
        if any(c.isupper() for c in password):
            score += 1
        if any(c.isdigit() for c in password):
            score += 1
        if any(c in "!@#$%^&*()-_=+[]{};:,<.>/?" for c in password):
            score += 1
        return score >= 3 and len(password) >= 8

    def allow_rate(self, key: str) -> bool:
        return self._rate_limiter.increment(key)

    def issue_token(self, user_id: str) -> str:
        now = int(time.time())
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + self._token_ttl,
        }
        return jwt.encode(payload, self._jwt_secret, algorithm="HS256")

    def decode_token(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            return jwt.decode(token, self._jwt_secret, algorithms=["HS256"])
        except jwt.PyJWTError:
            return None

    async def get_profile_from_token(self, token: str) -> Optional[UserProfileDocument]:
        if not token:
            return None
        payload = self.decode_token(token)
        if not payload:
            return None
        user_id = str(payload.get("sub") or "").strip()
        if not user_id:
            return None
        return await self._store.get_by_user_id(user_id)

    async def get_by_user_id(self, user_id: str) -> Optional[UserProfileDocument]:
        if not user_id:
            return None
        return await self._store.get_by_user_id(user_id)

    async def register_user(self, payload: RegisterRequest) -> UserProfileDocument:
        email = str(payload.email).strip().lower()
        if await self._store.email_exists(email):
            raise DuplicateKeyRepositoryError("email already registered")
        if not self.password_strength(payload.password):
            raise ValueError("weak password")
        age = compute_age(payload.date_of_birth)
        if not MIN_SIGNUP_AGE <= age <= MAX_SIGNUP_AGE:
            raise ValueError(f"age must be between {MIN_SIGNUP_AGE} and {MAX_SIGNUP_AGE}")

        now_ms = self._now_ms()
        document = UserProfileDocument(
            user_id=self._generate_user_id(),
            email=email,
            password_hash=self.hash_password(payload.password),
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            date_of_birth=payload.date_of_birth,
            gender_identity=payload.gender_identity,
            last_seen=now_ms,
            created_at=now_ms,
            updated_at=now_ms,
        )
        created = await self._store.create(document)
        LOGGER.info("Registered user=%s", created.user_id)
        return created

    async def authenticate_user(self, payload: LoginRequest) -> UserProfileDocument:
        profile = await self._store.get_by_email(str(payload.email))
        if not profile:
            raise NotFoundRepositoryError("user not found")
        if not self.verify_password(payload.password, profile.password_hash):
            raise PermissionError("invalid credentials")
        if not profile.is_active:
            raise PermissionError("account deactivated")
        return profile

    async def touch_last_seen(self, user_id: str) -> UserProfileDocument:
        return await self._store.update(user_id, {"lastSeen": self._now_ms()})

    async def update_profile(self, user_id: str, patch: UserProfilePatch) -> UserProfileDocument:
        updates: Dict[str, Any] = {}

        if patch.first_name is not None:
            updates["firstName"] = patch.first_name.strip()
        if patch.last_name is not None:
            updates["lastName"] = patch.last_name.strip()
        if patch.photos is not None:
            photos: list[str] = []
            for entry in patch.photos:
                cleaned = entry.strip() if isinstance(entry, str) else ""
                if cleaned and cleaned not in photos:
                    photos.append(cleaned)
                if len(photos) >= 9:
                    break
            updates["photos"] = photos
        if patch.gender_identity is not None:
            updates["genderIdentity"] = patch.gender_identity.model_dump(by_alias=True, mode="json")
        if patch.preferences is not None:
            current = await self._store.get_by_user_id(user_id)
            if not current:
                raise NotFoundRepositoryError("user not found")
            updates["preferences"] = self.merge_preferences(current.preferences, patch.preferences)

        if not updates:
            profile = await self._store.get_by_user_id(user_id)
            if not profile:
                raise NotFoundRepositoryError("user not found")
            return profile

        updates["updatedAt"] = self._now_ms()
        return await self._store.update(user_id, updates)

    @staticmethod
    def merge_preferences(stored: Preferences, changes: Preferences) -> Dict[str, Any]:
        """Overlay only the keys the client sent; ``ageRange`` bounds merge individually."""

        merged = stored.model_dump(by_alias=True, mode="json")
        sent = changes.model_dump(by_alias=True, mode="json", exclude_unset=True)
        age_range = sent.pop("ageRange", None)
        merged.update(sent)
        if age_range:
            merged["ageRange"] = {**merged["ageRange"], **age_range}
        try:
            return Preferences.model_validate(merged).model_dump(by_alias=True, mode="json")
        except ValidationError as exc:
            raise ValueError("ageRange.min must not exceed ageRange.max") from exc

    async def update_location(self, user_id: str, longitude: float, latitude: float) -> UserProfileDocument:
        now_ms = self._now_ms()
        point = GeoPoint.from_lon_lat(longitude, latitude)
        return await self._store.update(
            user_id,
            {
                "location": point.model_dump(mode="json"),
                "locationUpdatedAt": now_ms,
                "updatedAt": now_ms,
            },
        )

    async def set_mood(self, profile: UserProfileDocument, mood: Mood) -> UserProfileDocument:
        now_ms = self._now_ms()
        entry = MoodEntry(mood=mood, timestamp=now_ms, location=profile.location)
        return await self._store.append_mood(profile.user_id, entry, updated_at=now_ms)

    async def deactivate(self, user_id: str) -> UserProfileDocument:
        LOGGER.info("Deactivating user=%s", user_id)
        return await self._store.update(user_id, {"isActive": False, "updatedAt": self._now_ms()})

    @staticmethod
    def mood_history(profile: UserProfileDocument) -> MoodHistoryResponse:
        fresh = is_mood_fresh(profile.mood_updated_at, profile.preferences.mood_expiry_hours)
        return MoodHistoryResponse(
            current_mood=profile.current_mood if fresh else None,
            is_fresh=fresh,
            history=profile.mood_history,
        )

    @staticmethod
    def redact_profile_document(doc: UserProfileDocument) -> UserProfile:
        data = doc.model_dump(by_alias=True, exclude={"password_hash", "mood_history"})
        return UserProfile(**data)

    @staticmethod
    def public_profile(doc: UserProfileDocument) -> PublicProfile:
        fresh = is_mood_fresh(doc.mood_updated_at, doc.preferences.mood_expiry_hours)
        return PublicProfile(
            user_id=doc.user_id,
            first_name=doc.first_name,
            age=compute_age(doc.date_of_birth),
            gender_identity=doc.gender_identity,
            current_mood=doc.current_mood if fresh else None,
            photos=doc.photos,
            is_verified=doc.is_verified,
            last_seen=doc.last_seen,
        )


def get_user_store() -> UserStore:
    """Pick the configured persistence backend."""

    if get_settings().user_store_backend == "memory":
        return _memory_store
    return MongoUserStore(get_db())


def get_user_profile_service() -> UserProfileService:
    settings = get_settings()
    return UserProfileService(
        get_user_store(),
        jwt_secret=settings.jwt_secret,
        token_ttl_seconds=settings.auth_token_ttl,
        rate_limiter=_get_rate_limiter(settings.auth_rate_limit_window, settings.auth_rate_limit_max),
    )


__all__ = [
    "RateLimiter",
    "UserProfileService",
    "get_user_profile_service",
    "get_user_store",
]

"""In-process user and like stores, used for local development and tests."""

from __future__ import annotations

import copy
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from ..matching.distance import distance
from ..matching.mood import is_mood_fresh
from ..models.user_profile import MoodEntry, UserProfileDocument
from .base import CandidateFilter, LikeStore, UserStore
from .exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError


class InMemoryUserStore(UserStore):
    """Keeps Mongo-shaped documents in a dict keyed by ``userId``."""

    def __init__(self) -> None:
        self._docs: Dict[str, Dict[str, Any]] = {}

    def clear(self) -> None:
        self._docs.clear()

    def _load(self, doc: Dict[str, Any]) -> UserProfileDocument:
        return UserProfileDocument(**copy.deepcopy(doc))

    async def create(self, document: UserProfileDocument) -> UserProfileDocument:
        doc = document.to_mongo()
        if doc["userId"] in self._docs or await self.email_exists(doc["email"]):
            raise DuplicateKeyRepositoryError("email already registered")
        self._docs[doc["userId"]] = doc
        return self._load(doc)

    async def get_by_user_id(self, user_id: str) -> Optional[UserProfileDocument]:
        doc = self._docs.get(user_id)
        return self._load(doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[UserProfileDocument]:
        wanted = email.strip().lower()
        for doc in self._docs.values():
            if doc.get("email") == wanted:
                return self._load(doc)
        return None

    async def email_exists(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def update(self, user_id: str, updates: dict[str, Any]) -> UserProfileDocument:
        doc = self._docs.get(user_id)
        if doc is None:
            raise NotFoundRepositoryError("user not found")
        doc.update(copy.deepcopy(updates))
        return self._load(doc)

    async def append_mood(self, user_id: str, entry: MoodEntry, updated_at: int) -> UserProfileDocument:
        doc = self._docs.get(user_id)
        if doc is None:
            raise NotFoundRepositoryError("user not found")
        payload = entry.model_dump(mode="json")
        doc["currentMood"] = payload["mood"]
        doc["moodUpdatedAt"] = entry.timestamp
        doc["updatedAt"] = updated_at
        doc.setdefault("moodHistory", []).append(payload)
        return self._load(doc)

    def _matches(self, doc: Dict[str, Any], criteria: CandidateFilter) -> bool:
        if doc.get("userId") == criteria.exclude_user_id:
            return False
        if doc.get("isActive") is not True or doc.get("isBanned") is not False:
            return False

        location = doc.get("location") or {}
        meters = distance(criteria.center, location.get("coordinates"))
        if meters is None or meters > criteria.max_distance:
            return False

        dob = date.fromisoformat(doc["dateOfBirth"])
        if not criteria.dob_earliest <= dob <= criteria.dob_latest:
            return False

        if criteria.mood is not None:
            if doc.get("currentMood") != criteria.mood.value:
                return False
            expiry = (doc.get("preferences") or {}).get("moodExpiryHours")
            kwargs = {"expiry_hours": expiry} if expiry else {}
            if not is_mood_fresh(doc.get("moodUpdatedAt"), now=criteria.now, **kwargs):
                return False
        return True

    async def find_candidates(self, criteria: CandidateFilter) -> List[UserProfileDocument]:
        hits = [doc for doc in self._docs.values() if self._matches(doc, criteria)]
        hits.sort(key=lambda doc: doc.get("lastSeen") or 0, reverse=True)
        return [self._load(doc) for doc in hits[: criteria.limit]]


class InMemoryLikeStore(LikeStore):
    def __init__(self) -> None:
        self._likes: Dict[Tuple[str, str], int] = {}

    def clear(self) -> None:
        self._likes.clear()

    async def add(self, liker_id: str, liked_id: str, created_at: int) -> bool:
        key = (liker_id, liked_id)
        if key in self._likes:
            return False
        self._likes[key] = created_at
        return True

    async def remove(self, liker_id: str, liked_id: str) -> bool:
        return self._likes.pop((liker_id, liked_id), None) is not None

    async def exists(self, liker_id: str, liked_id: str) -> bool:
        return (liker_id, liked_id) in self._likes

    async def incoming(self, user_id: str, limit: int) -> List[Tuple[str, int]]:
        rows = [(liker, created) for (liker, liked), created in self._likes.items() if liked == user_id]
        rows.sort(key=lambda row: row[1], reverse=True)
        return rows[:limit]

    async def outgoing(self, user_id: str, limit: int) -> Dict[str, int]:
        rows = [(liked, created) for (liker, liked), created in self._likes.items() if liker == user_id]
        return dict(rows[:limit])


__all__ = ["InMemoryLikeStore", "InMemoryUserStore"]

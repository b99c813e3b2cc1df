"""MongoDB-backed user and like stores."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..db.collections import LIKES_COLLECTION, USERS_COLLECTION
from ..matching.distance import EARTH_RADIUS_M
from ..models.user_profile import DEFAULT_MOOD_EXPIRY_HOURS, MoodEntry, UserProfileDocument
from .base import CandidateFilter, LikeStore, UserStore
from .exceptions import (
    DuplicateKeyRepositoryError,
    NotFoundRepositoryError,
    StorageUnavailableError,
)

LOGGER = logging.getLogger("uvicorn.error")


@contextmanager
def driver_errors(action: str) -> Iterator[None]:
    """Re-raise driver failures (other than duplicate keys) as ``StorageUnavailableError``."""

    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as exc:
        LOGGER.error("Mongo %s failed: %s", action, exc)
        raise StorageUnavailableError("storage unavailable") from exc


def build_candidate_query(criteria: CandidateFilter) -> dict[str, Any]:
    """Translate ``criteria`` into a single MongoDB filter document."""

    center = [criteria.center.longitude, criteria.center.latitude]
    query: dict[str, Any] = {
        "userId": {"$ne": criteria.exclude_user_id},
        "isActive": True,
        "isBanned": False,
        "location": {
            "$geoWithin": {"$centerSphere": [center, criteria.max_distance / EARTH_RADIUS_M]}
        },
        # ISO dates compare correctly as strings
        "dateOfBirth": {
            "$gte": criteria.dob_earliest.isoformat(),
            "$lte": criteria.dob_latest.isoformat(),
        },
    }
    if criteria.mood is not None:
        query["currentMood"] = criteria.mood.value
        query["$expr"] = {
            "$gte": [
                "$moodUpdatedAt",
                {
                    "$subtract": [
                        criteria.now,
                        {
                            "$multiply": [
                                {"$ifNull": ["$preferences.moodExpiryHours", DEFAULT_MOOD_EXPIRY_HOURS]},
                                3_600_000,
                            ]
                        },
                    ]
                },
            ]
        }
    return query


class MongoUserStore(UserStore):
    """Thin abstraction over the users MongoDB collection."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[USERS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create(self, document: UserProfileDocument) -> UserProfileDocument:
        doc = document.to_mongo()
        with driver_errors("insert user"):
            try:
                await self._collection.insert_one(doc)
            except DuplicateKeyError as exc:
                LOGGER.debug("Duplicate user insertion for email=%s", document.email)
                raise DuplicateKeyRepositoryError("email already registered") from exc
        return document

    async def get_by_user_id(self, user_id: str) -> Optional[UserProfileDocument]:
        with driver_errors("load user"):
            doc = await self._collection.find_one({"userId": user_id})
        return UserProfileDocument(**doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[UserProfileDocument]:
        with driver_errors("load user by email"):
            doc = await self._collection.find_one({"email": email.strip().lower()})
        return UserProfileDocument(**doc) if doc else None

    async def email_exists(self, email: str) -> bool:
        with driver_errors("check email"):
            doc = await self._collection.find_one(
                {"email": email.strip().lower()}, projection={"_id": 1}
            )
        return doc is not None

    async def update(self, user_id: str, updates: dict[str, Any]) -> UserProfileDocument:
        with driver_errors("update user"):
            result = await self._collection.find_one_and_update(
                {"userId": user_id},
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            )
        if not result:
            raise NotFoundRepositoryError("user not found")
        return UserProfileDocument(**result)

    async def append_mood(self, user_id: str, entry: MoodEntry, updated_at: int) -> UserProfileDocument:
        payload = entry.model_dump(mode="json")
        with driver_errors("append mood"):
            result = await self._collection.find_one_and_update(
                {"userId": user_id},
                {
                    "$set": {
                        "currentMood": payload["mood"],
                        "moodUpdatedAt": entry.timestamp,
                        "updatedAt": updated_at,
                    },
                    "$push": {"moodHistory": payload},
                },
                return_document=ReturnDocument.AFTER,
            )
        if not result:
            raise NotFoundRepositoryError("user not found")
        return UserProfileDocument(**result)

    async def find_candidates(self, criteria: CandidateFilter) -> List[UserProfileDocument]:
        query = build_candidate_query(criteria)
        with driver_errors(f"candidate query for user={criteria.exclude_user_id}"):
            cursor = (
                self._collection.find(query, projection={"passwordHash": 0})
                .sort("lastSeen", DESCENDING)
                .limit(criteria.limit)
            )
            docs = await cursor.to_list(length=criteria.limit)
        return [UserProfileDocument(**{**doc, "passwordHash": ""}) for doc in docs]


class MongoLikeStore(LikeStore):
    """Likes collection; the ``(likerId, likedId)`` unique index keeps writes idempotent."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[LIKES_COLLECTION]

    async def add(self, liker_id: str, liked_id: str, created_at: int) -> bool:
        with driver_errors("record like"):
            try:
                result = await self._collection.update_one(
                    {"likerId": liker_id, "likedId": liked_id},
                    {
                        "$setOnInsert": {
                            "likerId": liker_id,
                            "likedId": liked_id,
                            "createdAt": created_at,
                        }
                    },
                    upsert=True,
                )
            except DuplicateKeyError:
                # concurrent upsert of the same pair
                return False
        return result.upserted_id is not None

    async def remove(self, liker_id: str, liked_id: str) -> bool:
        with driver_errors("remove like"):
            result = await self._collection.delete_one({"likerId": liker_id, "likedId": liked_id})
        return bool(result.deleted_count)

    async def exists(self, liker_id: str, liked_id: str) -> bool:
        with driver_errors("check like"):
            doc = await self._collection.find_one(
                {"likerId": liker_id, "likedId": liked_id},
                projection={"_id": 1},
            )
        return doc is not None

    async def incoming(self, user_id: str, limit: int) -> List[Tuple[str, int]]:
        with driver_errors("load likes received"):
            docs = (
                await self._collection.find({"likedId": user_id})
                .sort("createdAt", DESCENDING)
                .to_list(length=limit)
            )
        return [(doc["likerId"], doc.get("createdAt") or 0) for doc in docs]

    async def outgoing(self, user_id: str, limit: int) -> Dict[str, int]:
        with driver_errors("load likes given"):
            docs = await self._collection.find({"likerId": user_id}).to_list(length=limit)
        return {doc["likedId"]: doc.get("createdAt") or 0 for doc in docs}


__all__ = ["MongoLikeStore", "MongoUserStore", "build_candidate_query", "driver_errors"]

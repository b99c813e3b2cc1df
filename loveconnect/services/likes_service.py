from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

from ..config import get_settings
from ..db import get_db
from ..models.likes import LikedUser
from ..repositories import InMemoryLikeStore, LikeStore, MongoLikeStore, UserStore
from .user_profile_service import UserProfileService

LOGGER = logging.getLogger("uvicorn.error")

INCOMING_SCAN_LIMIT = 500
MATCH_SCAN_LIMIT = 1000

_memory_likes = InMemoryLikeStore()


def _now_ms() -> int:
    return int(time.time() * 1000)


async def has_liked(likes: LikeStore, liker_id: str, liked_id: str) -> bool:
    return await likes.exists(liker_id, liked_id)


async def record_like(likes: LikeStore, liker_id: str, liked_id: str) -> Tuple[bool, bool]:
    """Store a like; returns ``(is_new_like, is_match)``."""

    if liker_id == liked_id:
        raise ValueError("Users cannot like themselves")

    is_new_like = await likes.add(liker_id, liked_id, _now_ms())
    is_match = await likes.exists(liked_id, liker_id)
    if is_new_like and is_match:
        LOGGER.info("Match between user=%s and user=%s", liker_id, liked_id)
    return is_new_like, is_match


async def remove_like(likes: LikeStore, liker_id: str, liked_id: str) -> bool:
    if liker_id == liked_id:
        return False
    return await likes.remove(liker_id, liked_id)


async def _to_liked_users(
    store: UserStore,
    rows: List[Tuple[str, int, Optional[int]]],
) -> List[LikedUser]:
    users: List[LikedUser] = []
    for user_id, liked_at, matched_at in rows:
        doc = await store.get_by_user_id(user_id)
        if not doc or not doc.is_active or doc.is_banned:
            continue
        users.append(
            LikedUser(
                profile=UserProfileService.public_profile(doc),
                liked_at=liked_at,
                matched_at=matched_at,
            )
        )
    return users


async def get_likes_received(likes: LikeStore, store: UserStore, user_id: str) -> List[LikedUser]:
    """Users who liked ``user_id`` and have not been liked back."""

    incoming = await likes.incoming(user_id, INCOMING_SCAN_LIMIT)
    outgoing = await likes.outgoing(user_id, MATCH_SCAN_LIMIT)
    rows = [(liker_id, created_at, None) for liker_id, created_at in incoming if liker_id not in outgoing]
    return await _to_liked_users(store, rows)


async def get_matches(likes: LikeStore, store: UserStore, user_id: str) -> List[LikedUser]:
    """Mutual likes, newest match first."""

    liked_at = await likes.outgoing(user_id, MATCH_SCAN_LIMIT)
    if not liked_at:
        return []
    incoming = await likes.incoming(user_id, MATCH_SCAN_LIMIT)

    rows = []
    for other, their_like_at in incoming:
        if other not in liked_at:
            continue
        rows.append((other, liked_at[other], max(their_like_at, liked_at[other])))
    rows.sort(key=lambda row: row[2], reverse=True)
    return await _to_liked_users(store, rows)


def get_like_store() -> LikeStore:
    """Likes live beside users on the configured backend."""

    if get_settings().user_store_backend == "memory":
        return _memory_likes
    return MongoLikeStore(get_db())


__all__ = [
    "get_like_store",
    "get_likes_received",
    "get_matches",
    "has_liked",
    "record_like",
    "remove_like",
]

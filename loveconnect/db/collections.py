"""MongoDB collection names used by the API."""

from __future__ import annotations

from typing import Final

USERS_COLLECTION: Final[str] = "users"
LIKES_COLLECTION: Final[str] = "likes"

__all__ = [
    "USERS_COLLECTION",
    "LIKES_COLLECTION",
]

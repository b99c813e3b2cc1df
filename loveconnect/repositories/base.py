"""Storage-agnostic interfaces for user profile and like persistence."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from ..models.user_profile import GeoPoint, Mood, MoodEntry, UserProfileDocument


@dataclass(frozen=True)
class CandidateFilter:
    """Predicates a store evaluates as one compound query.

    ``dob_earliest``/``dob_latest`` are inclusive birth-date bounds equivalent to
    the requested age range. When ``mood`` is set, only candidates whose mood is
    still fresh at ``now`` (epoch ms) qualify.
    """

    exclude_user_id: str
    center: GeoPoint
    max_distance: int
    dob_earliest: date
    dob_latest: date
    limit: int
    now: int
    mood: Optional[Mood] = None


class UserStore(abc.ABC):
    """Read/write contract every user persistence backend implements."""

    @abc.abstractmethod
    async def create(self, document: UserProfileDocument) -> UserProfileDocument:
        """Insert a new profile; raises ``DuplicateKeyRepositoryError`` on email/id clash."""

    @abc.abstractmethod
    async def get_by_user_id(self, user_id: str) -> Optional[UserProfileDocument]:
        ...

    @abc.abstractmethod
    async def get_by_email(self, email: str) -> Optional[UserProfileDocument]:
        ...

    @abc.abstractmethod
    async def email_exists(self, email: str) -> bool:
        ...

    @abc.abstractmethod
    async def update(self, user_id: str, updates: dict[str, Any]) -> UserProfileDocument:
        """Set top-level fields (alias names); raises ``NotFoundRepositoryError``."""

    @abc.abstractmethod
    async def append_mood(self, user_id: str, entry: MoodEntry, updated_at: int) -> UserProfileDocument:
        """Make ``entry`` the current mood and append it to the history in one write."""

    @abc.abstractmethod
    async def find_candidates(self, criteria: CandidateFilter) -> List[UserProfileDocument]:
        """Return matching profiles ordered by ``lastSeen`` descending, at most ``criteria.limit``."""


class LikeStore(abc.ABC):
    """Directed likes between users, one record per ``(liker, liked)`` pair."""

    @abc.abstractmethod
    async def add(self, liker_id: str, liked_id: str, created_at: int) -> bool:
        """Insert the like if absent; returns ``True`` only when a new record was written."""

    @abc.abstractmethod
    async def remove(self, liker_id: str, liked_id: str) -> bool:
        ...

    @abc.abstractmethod
    async def exists(self, liker_id: str, liked_id: str) -> bool:
        ...

    @abc.abstractmethod
    async def incoming(self, user_id: str, limit: int) -> List[Tuple[str, int]]:
        """``(liker_id, created_at)`` pairs for likes of ``user_id``, newest first."""

    @abc.abstractmethod
    async def outgoing(self, user_id: str, limit: int) -> Dict[str, int]:
        """Map of ``liked_id`` to ``created_at`` for likes given by ``user_id``."""


__all__ = ["CandidateFilter", "LikeStore", "UserStore"]

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import List, Optional

from ..config import get_settings
from ..matching.candidates import Candidate, CandidateQueryOptions, find_candidates
from ..matching.gender import is_compatible
from ..models.user_profile import UserProfileDocument
from ..repositories.base import UserStore
from .user_profile_service import get_user_store


class MatchingService:
    """Applies configured limits around the candidate search."""

    def __init__(
        self,
        store: UserStore,
        *,
        default_limit: int,
        max_limit: int,
        overfetch_factor: int = 1,
    ) -> None:
        self._store = store
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._overfetch_factor = overfetch_factor

    @property
    def store(self) -> UserStore:
        return self._store

    async def nearby(
        self,
        requester: UserProfileDocument,
        options: Optional[CandidateQueryOptions] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[Candidate]:
        options = options or CandidateQueryOptions()
        if options.limit is not None:
            options = replace(options, limit=min(options.limit, self._max_limit))
        return await find_candidates(
            self._store,
            requester,
            options,
            default_limit=min(self._default_limit, self._max_limit),
            overfetch_factor=self._overfetch_factor,
            cancel_event=cancel_event,
        )

    async def can_like(self, requester: UserProfileDocument, target_user_id: str) -> Optional[UserProfileDocument]:
        """Return the target profile when it is visible to and compatible with ``requester``."""

        target = await self._store.get_by_user_id(target_user_id)
        if not target or not target.is_active or target.is_banned:
            return None
        if not is_compatible(requester.gender_identity, target.gender_identity):
            return None
        return target


def get_matching_service() -> MatchingService:
    settings = get_settings()
    return MatchingService(
        get_user_store(),
        default_limit=settings.match_default_limit,
        max_limit=settings.match_max_limit,
        overfetch_factor=settings.match_overfetch_factor,
    )


__all__ = ["MatchingService", "get_matching_service"]

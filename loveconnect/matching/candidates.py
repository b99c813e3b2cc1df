"""Proximity and compatibility candidate search.

The store evaluates distance, age, visibility and mood in one capped query
ordered by ``lastSeen``. Gender compatibility needs both users' full interest
sets, so it runs afterwards on the page the store returned. With the default
``overfetch_factor`` of 1 that page is exactly ``limit`` rows, which means a
search can return fewer than ``limit`` candidates even when more compatible
users exist further down the ordering.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, List, Optional, TypeVar

from ..models.user_profile import CandidateProfile, Mood, UserProfileDocument
from ..repositories.base import CandidateFilter, UserStore
from .age import birthdate_bounds, compute_age
from .distance import distance
from .exceptions import InvalidQueryStateError, InvalidRangeError
from .gender import is_compatible
from .mood import is_mood_fresh, now_ms

LOGGER = logging.getLogger("uvicorn.error")

DEFAULT_LIMIT = 50

T = TypeVar("T")


@dataclass
class CandidateQueryOptions:
    """Per-request overrides; ``None`` falls back to the requester's preferences."""

    max_distance: Optional[int] = None
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    mood: Optional[Mood] = None
    limit: Optional[int] = None


@dataclass
class Candidate:
    profile: UserProfileDocument
    age: int
    distance: Optional[int]
    mood_fresh: bool

    def to_public(self) -> CandidateProfile:
        doc = self.profile
        return CandidateProfile(
            user_id=doc.user_id,
            first_name=doc.first_name,
            age=self.age,
            gender_identity=doc.gender_identity,
            current_mood=doc.current_mood if self.mood_fresh else None,
            photos=doc.photos,
            is_verified=doc.is_verified,
            last_seen=doc.last_seen,
            distance=self.distance,
        )


async def _read_with_cancel(read: Awaitable[T], cancel_event: Optional[asyncio.Event]) -> T:
    if cancel_event is None:
        return await read

    read_task = asyncio.ensure_future(read)
    cancel_task = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait(
            {read_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        read_task.cancel()
        raise
    finally:
        cancel_task.cancel()

    if read_task in done:
        return read_task.result()

    read_task.cancel()
    try:
        await read_task
    except asyncio.CancelledError:
        pass
    raise asyncio.CancelledError("candidate query cancelled")


def resolve_filter(
    requester: UserProfileDocument,
    options: CandidateQueryOptions,
    *,
    default_limit: int = DEFAULT_LIMIT,
    overfetch_factor: int = 1,
    today: Optional[date] = None,
    now: Optional[int] = None,
) -> CandidateFilter:
    """Apply preference defaults and validate the resulting query."""

    if requester.location is None:
        raise InvalidQueryStateError("requester has no location set")

    prefs = requester.preferences
    max_distance = prefs.search_radius if options.max_distance is None else options.max_distance
    age_min = prefs.age_range.min if options.age_min is None else options.age_min
    age_max = prefs.age_range.max if options.age_max is None else options.age_max
    limit = default_limit if options.limit is None else options.limit

    if age_min > age_max:
        raise InvalidRangeError(f"ageMin ({age_min}) is greater than ageMax ({age_max})")
    if max_distance < 0:
        raise InvalidRangeError("maxDistance must not be negative")
    if limit < 1:
        raise InvalidRangeError("limit must be at least 1")

    earliest, latest = birthdate_bounds(age_min, age_max, today)
    return CandidateFilter(
        exclude_user_id=requester.user_id,
        center=requester.location,
        max_distance=max_distance,
        dob_earliest=earliest,
        dob_latest=latest,
        limit=limit * max(1, overfetch_factor),
        now=now_ms() if now is None else now,
        mood=Mood(options.mood) if options.mood is not None else None,
    )


async def find_candidates(
    store: UserStore,
    requester: UserProfileDocument,
    options: Optional[CandidateQueryOptions] = None,
    *,
    default_limit: int = DEFAULT_LIMIT,
    overfetch_factor: int = 1,
    cancel_event: Optional[asyncio.Event] = None,
    today: Optional[date] = None,
    now: Optional[int] = None,
) -> List[Candidate]:
    """Return candidates for ``requester``, most recently active first."""

    options = options or CandidateQueryOptions()
    criteria = resolve_filter(
        requester,
        options,
        default_limit=default_limit,
        overfetch_factor=overfetch_factor,
        today=today,
        now=now,
    )
    limit = default_limit if options.limit is None else options.limit

    rows = await _read_with_cancel(store.find_candidates(criteria), cancel_event)

    candidates: List[Candidate] = []
    for doc in rows:
        if not is_compatible(requester.gender_identity, doc.gender_identity):
            continue
        candidates.append(
            Candidate(
                profile=doc,
                age=compute_age(doc.date_of_birth, today),
                distance=distance(requester.location, doc.location),
                mood_fresh=is_mood_fresh(
                    doc.mood_updated_at, doc.preferences.mood_expiry_hours, now=criteria.now
                ),
            )
        )
        if len(candidates) >= limit:
            break

    LOGGER.debug(
        "Candidate search user=%s fetched=%d compatible=%d",
        requester.user_id,
        len(rows),
        len(candidates),
    )
    return candidates


__all__ = [
    "Candidate",
    "CandidateQueryOptions",
    "DEFAULT_LIMIT",
    "find_candidates",
    "resolve_filter",
]

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ..matching.candidates import CandidateQueryOptions
from ..models.likes import (
    LikeRemovalResponse,
    LikeRequest,
    LikeResponse,
    LikesReceivedResponse,
    MatchesResponse,
    NearbyResponse,
)
from ..models.user_profile import Mood, UserProfileDocument
from ..redis_bus import publish_to_user
from ..repositories.base import LikeStore
from ..services.likes_service import (
    get_like_store,
    get_likes_received,
    get_matches,
    record_like,
    remove_like,
)
from ..services.matching_service import MatchingService, get_matching_service
from .deps import require_current_user

LOGGER = logging.getLogger("uvicorn.error")

DISCONNECT_POLL_SECONDS = 0.25

router = APIRouter(prefix="/matches", tags=["matches"])


async def watch_disconnect(
    request: Request,
    cancel_event: asyncio.Event,
    interval: float = DISCONNECT_POLL_SECONDS,
) -> None:
    """Set ``cancel_event`` once the client has gone away."""

    while not cancel_event.is_set():
        if await request.is_disconnected():
            cancel_event.set()
            return
        await asyncio.sleep(interval)


@router.get("/nearby", response_model=NearbyResponse)
async def nearby(
    request: Request,
    max_distance: Optional[int] = Query(default=None, alias="maxDistance", ge=0),
    age_min: Optional[int] = Query(default=None, alias="ageMin", ge=18, le=100),
    age_max: Optional[int] = Query(default=None, alias="ageMax", ge=18, le=100),
    mood: Optional[Mood] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    current: UserProfileDocument = Depends(require_current_user),
    service: MatchingService = Depends(get_matching_service),
):
    options = CandidateQueryOptions(
        max_distance=max_distance,
        age_min=age_min,
        age_max=age_max,
        mood=mood,
        limit=limit,
    )
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel_event))
    try:
        candidates = await service.nearby(current, options, cancel_event=cancel_event)
    except asyncio.CancelledError:
        if cancel_event.is_set():
            LOGGER.info("Nearby search for user=%s abandoned by client", current.user_id)
        raise
    finally:
        watcher.cancel()
    return NearbyResponse(
        candidates=[candidate.to_public() for candidate in candidates],
        count=len(candidates),
    )


@router.post("/like", response_model=LikeResponse)
async def create_like(
    payload: LikeRequest,
    current: UserProfileDocument = Depends(require_current_user),
    service: MatchingService = Depends(get_matching_service),
    likes: LikeStore = Depends(get_like_store),
):
    target_user_id = payload.target_user_id.strip()
    if not target_user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="targetUserId required")
    if target_user_id == current.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="cannot like yourself")

    target = await service.can_like(current, target_user_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="target user not found")

    _, is_match = await record_like(likes, current.user_id, target_user_id)
    if is_match:
        event = {"type": "match", "users": [current.user_id, target_user_id]}
        await publish_to_user(current.user_id, {**event, "with": target_user_id})
        await publish_to_user(target_user_id, {**event, "with": current.user_id})
    return LikeResponse(is_match=is_match)


@router.delete("/like/{target_user_id}", response_model=LikeRemovalResponse)
async def delete_like(
    target_user_id: str,
    current: UserProfileDocument = Depends(require_current_user),
    likes: LikeStore = Depends(get_like_store),
):
    target = target_user_id.strip()
    if target == current.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="cannot unlike yourself")
    removed = await remove_like(likes, current.user_id, target)
    return LikeRemovalResponse(removed=removed)


@router.get("/likes-received", response_model=LikesReceivedResponse)
async def likes_received(
    current: UserProfileDocument = Depends(require_current_user),
    service: MatchingService = Depends(get_matching_service),
    likes: LikeStore = Depends(get_like_store),
):
    liked_me = await get_likes_received(likes, service.store, current.user_id)
    return LikesReceivedResponse(liked_me=liked_me)


@router.get("", response_model=MatchesResponse)
async def list_matches(
    current: UserProfileDocument = Depends(require_current_user),
    service: MatchingService = Depends(get_matching_service),
    likes: LikeStore = Depends(get_like_store),
):
    matches = await get_matches(likes, service.store, current.user_id)
    return MatchesResponse(matches=matches)


__all__ = ["router"]

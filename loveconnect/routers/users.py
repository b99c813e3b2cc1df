from fastapi import APIRouter, Depends, HTTPException, status

from ..models.user_profile import (
    LocationUpdate,
    MoodHistoryResponse,
    MoodUpdate,
    PublicProfile,
    UserProfile,
    UserProfileDocument,
    UserProfilePatch,
)
from ..repositories.exceptions import NotFoundRepositoryError
from ..services.user_profile_service import UserProfileService, get_user_profile_service
from .deps import require_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfile)
async def me(
    current: UserProfileDocument = Depends(require_current_user),
    service: UserProfileService = Depends(get_user_profile_service),
):
    return service.redact_profile_document(current)


@router.patch("/me", response_model=UserProfile)
async def update_me(
    patch: UserProfilePatch,
    current: UserProfileDocument = Depends(require_current_user),
    service: UserProfileService = Depends(get_user_profile_service),
):
    try:
        updated = await service.update_profile(current.user_id, patch)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="not found") from None
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    return service.redact_profile_document(updated)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_me(
    current: UserProfileDocument = Depends(require_current_user),
    service: UserProfileService = Depends(get_user_profile_service),
):
    await service.deactivate(current.user_id)


@router.put("/me/location", response_model=UserProfile)
async def update_location(
    body: LocationUpdate,
    current: UserProfileDocument = Depends(require_current_user),
    service: UserProfileService = Depends(get_user_profile_service),
):
    updated = await service.update_location(current.user_id, body.longitude, body.latitude)
    return service.redact_profile_document(updated)


@router.put("/me/mood", response_model=UserProfile)
async def update_mood(
    body: MoodUpdate,
    current: UserProfileDocument = Depends(require_current_user),
    service: UserProfileService = Depends(get_user_profile_service),
):
    updated = await service.set_mood(current, body.mood)
    return service.redact_profile_document(updated)


@router.get("/me/mood-history", response_model=MoodHistoryResponse)
async def mood_history(
    current: UserProfileDocument = Depends(require_current_user),
    service: UserProfileService = Depends(get_user_profile_service),
):
    return service.mood_history(current)


@router.get("/{user_id}", response_model=PublicProfile)
async def profile_by_id(
    user_id: str,
    _current: UserProfileDocument = Depends(require_current_user),
    service: UserProfileService = Depends(get_user_profile_service),
):
    doc = await service.get_by_user_id(user_id.strip())
    if not doc or not doc.is_active or doc.is_banned:
        raise HTTPException(status_code=404, detail="not found")
    return service.public_profile(doc)


__all__ = ["router"]

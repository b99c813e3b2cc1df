from fastapi import Depends, Header, HTTPException, status

from ..models.user_profile import UserProfileDocument
from ..repositories.exceptions import NotFoundRepositoryError
from ..services.user_profile_service import UserProfileService, get_user_profile_service


def _extract_token(authorization: str) -> str:
    if not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token")
    return token


async def require_current_user(
    authorization: str = Header(default=""),
    service: UserProfileService = Depends(get_user_profile_service),
) -> UserProfileDocument:
    """Resolve the bearer token to an active, non-banned profile and bump ``lastSeen``."""

    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="authorization required")
    token = _extract_token(authorization)
    profile = await service.get_profile_from_token(token)
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token")
    if profile.is_banned:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="account banned")
    if not profile.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="account deactivated")
    try:
        return await service.touch_last_seen(profile.user_id)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token") from None


__all__ = ["require_current_user"]

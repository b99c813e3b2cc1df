from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..models.user_profile import AuthTokenResponse, LoginRequest, RegisterRequest
from ..repositories.exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError
from ..services.user_profile_service import UserProfileService, get_user_profile_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthTokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    service: UserProfileService = Depends(get_user_profile_service),
):
    ip = request.client.host if request.client else "unknown"
    if not service.allow_rate(f"register:{ip}"):
        raise HTTPException(status_code=429, detail="rate limit exceeded")
    try:
        profile_doc = await service.register_user(body)
    except DuplicateKeyRepositoryError:
        raise HTTPException(status_code=409, detail="email already registered") from None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    token = service.issue_token(profile_doc.user_id)
    return AuthTokenResponse(token=token, profile=service.redact_profile_document(profile_doc))


@router.post("/login", response_model=AuthTokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    service: UserProfileService = Depends(get_user_profile_service),
):
    ip = request.client.host if request.client else "unknown"
    if not service.allow_rate(f"login:{ip}"):
        raise HTTPException(status_code=429, detail="rate limit exceeded")
    try:
        profile_doc = await service.authenticate_user(body)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="user not found") from None
    except PermissionError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from None

    token = service.issue_token(profile_doc.user_id)
    return AuthTokenResponse(token=token, profile=service.redact_profile_document(profile_doc))


__all__ = ["router"]

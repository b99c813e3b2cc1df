from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .user_profile import CandidateProfile, PublicProfile


class LikeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_user_id: str = Field(alias="targetUserId", min_length=1)


class LikeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok"] = "ok"
    is_match: bool = Field(alias="isMatch")


class LikedUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profile: PublicProfile
    liked_at: Optional[int] = Field(default=None, alias="likedAt")
    matched_at: Optional[int] = Field(default=None, alias="matchedAt")


class LikesReceivedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    liked_me: List[LikedUser] = Field(default_factory=list, alias="likedMe")


class MatchesResponse(BaseModel):
    matches: List[LikedUser] = Field(default_factory=list)


class LikeRemovalResponse(BaseModel):
    status: Literal["ok"] = "ok"
    removed: bool = False


class NearbyResponse(BaseModel):
    candidates: List[CandidateProfile] = Field(default_factory=list)
    count: int = 0


__all__ = [
    "LikeRemovalResponse",
    "LikeRequest",
    "LikeResponse",
    "LikedUser",
    "LikesReceivedResponse",
    "MatchesResponse",
    "NearbyResponse",
]

from .likes_service import get_like_store, get_likes_received, get_matches, record_like, remove_like
from .matching_service import MatchingService, get_matching_service
from .user_profile_service import UserProfileService, get_user_profile_service, get_user_store

__all__ = [
    "MatchingService",
    "UserProfileService",
    "get_like_store",
    "get_likes_received",
    "get_matches",
    "get_matching_service",
    "get_user_profile_service",
    "get_user_store",
    "record_like",
    "remove_like",
]

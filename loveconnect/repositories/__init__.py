"""Repository layer: user and like store interfaces, two backends each."""

from .base import CandidateFilter, LikeStore, UserStore
from .memory import InMemoryLikeStore, InMemoryUserStore
from .mongo import MongoLikeStore, MongoUserStore

__all__ = [
    "CandidateFilter",
    "InMemoryLikeStore",
    "InMemoryUserStore",
    "LikeStore",
    "MongoLikeStore",
    "MongoUserStore",
    "UserStore",
]

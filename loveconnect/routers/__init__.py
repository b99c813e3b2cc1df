from . import auth, matches, users

__all__ = ["auth", "matches", "users"]

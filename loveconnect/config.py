import os
from functools import lru_cache
from pathlib import Path as _Path

from dotenv import load_dotenv as _load_dotenv
from pydantic import BaseModel, Field

_load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _redis_pubsub_enabled_default() -> bool:
    explicit = os.getenv("REDIS_PUBSUB_ENABLED")
    if explicit is not None:
        return explicit.lower() in ("1", "true", "yes")
    return bool(os.getenv("REDIS_URL"))


class Settings(BaseModel):
    # Support multiple common env var names for Mongo connection string
    mongo_uri: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URI")
            or os.getenv("MONGODB_URI")
            or os.getenv("MONGO_URL")
            or ""
        )
    )
    mongo_db: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "loveconnect"))
    # Optional: provide a non-SRV fallback URI (e.g., mongodb://127.0.0.1:27017)
    mongo_alt_uri: str = Field(default_factory=lambda: os.getenv("MONGO_ALT_URI", ""))
    mongo_direct: bool = Field(default_factory=lambda: _env_flag("MONGO_DIRECT"))
    cors_origins: str = Field(
        default_factory=lambda: os.getenv("CORS_ORIGINS")
        or os.getenv("FRONTEND_URL")
        or "http://localhost:5173,http://127.0.0.1:5173"
    )
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    slow_request_ms: int = Field(default_factory=lambda: int(os.getenv("SLOW_REQUEST_MS", "800")))

    # Auth
    jwt_secret: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", "change-me"))
    auth_token_ttl: int = Field(default_factory=lambda: int(os.getenv("AUTH_TOKEN_TTL", str(7 * 24 * 3600))))
    auth_rate_limit_window: int = Field(default_factory=lambda: int(os.getenv("AUTH_RATE_LIMIT_WINDOW", "900")))
    auth_rate_limit_max: int = Field(default_factory=lambda: int(os.getenv("AUTH_RATE_LIMIT_MAX", "20")))

    # Persistence strategy: "mongo" or "memory"
    user_store_backend: str = Field(
        default_factory=lambda: os.getenv("USER_STORE_BACKEND", "mongo").strip().lower()
    )

    # Candidate search
    match_default_limit: int = Field(default_factory=lambda: int(os.getenv("MATCH_DEFAULT_LIMIT", "50")))
    match_max_limit: int = Field(default_factory=lambda: int(os.getenv("MATCH_MAX_LIMIT", "100")))
    # 1 keeps the storage page equal to the requested limit
    match_overfetch_factor: int = Field(
        default_factory=lambda: max(1, int(os.getenv("MATCH_OVERFETCH_FACTOR", "1")))
    )

    # Redis pub/sub (realtime notifications)
    redis_url: str = Field(default_factory=lambda: os.getenv("REDIS_URL", ""))
    redis_pubsub_enabled: bool = Field(default_factory=_redis_pubsub_enabled_default)
    redis_pubsub_prefix: str = Field(default_factory=lambda: os.getenv("REDIS_PUBSUB_PREFIX", "lc"))


@lru_cache()
def get_settings() -> Settings:
    return Settings()

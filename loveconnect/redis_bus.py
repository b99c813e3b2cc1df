"""Realtime notifications over Redis pub/sub, one channel per user."""

import json
import logging
from typing import Any, Dict, Optional

from redis.asyncio import Redis

from .config import get_settings

LOGGER = logging.getLogger("uvicorn.error")

_client: Optional[Redis] = None


def user_channel(user_id: str) -> str:
    prefix = (get_settings().redis_pubsub_prefix or "").strip()
    topic = f"user.{user_id}"
    return f"{prefix}.{topic}" if prefix else topic


async def _ensure_client() -> Optional[Redis]:
    global _client
    if _client is not None:
        return _client
    settings = get_settings()
    if not settings.redis_url:
        return None
    try:
        client = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=False,
        )
        await client.ping()
        _client = client
    except Exception as exc:
        LOGGER.warning("Redis unavailable, realtime notifications disabled: %s", exc)
        _client = None
    return _client


async def publish_to_user(user_id: str, event: Dict[str, Any]) -> bool:
    """Publish ``event`` on the user's channel; returns False when nothing was sent."""

    if not get_settings().redis_pubsub_enabled:
        return False
    client = await _ensure_client()
    if not client:
        return False
    try:
        payload = json.dumps(event, separators=(",", ":")).encode("utf-8")
        await client.publish(user_channel(user_id), payload)
    except Exception as exc:
        LOGGER.warning("Realtime publish to user=%s failed: %s", user_id, exc)
        return False
    return True


async def stop() -> None:
    global _client
    if _client is not None:
        try:
            await _client.close()
        except Exception:
            pass
        _client = None


__all__ = ["publish_to_user", "stop", "user_channel"]

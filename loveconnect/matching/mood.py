from __future__ import annotations

import time
from typing import Optional

from ..models.user_profile import DEFAULT_MOOD_EXPIRY_HOURS

_MS_PER_HOUR = 3_600_000


def now_ms() -> int:
    return int(time.time() * 1000)


def is_mood_fresh(
    mood_timestamp: Optional[int],
    expiry_hours: int = DEFAULT_MOOD_EXPIRY_HOURS,
    now: Optional[int] = None,
) -> bool:
    """A mood set at ``mood_timestamp`` (epoch ms) is fresh for ``expiry_hours`` inclusive."""

    if mood_timestamp is None:
        return False
    current = now_ms() if now is None else now
    return current - mood_timestamp <= expiry_hours * _MS_PER_HOUR


__all__ = ["is_mood_fresh", "now_ms"]

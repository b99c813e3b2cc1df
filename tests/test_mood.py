from __future__ import annotations

from loveconnect.matching.mood import is_mood_fresh

HOUR_MS = 3_600_000


def test_mood_at_expiry_boundary_is_fresh(now_ms: int) -> None:
    assert is_mood_fresh(now_ms - 24 * HOUR_MS, 24, now=now_ms)


def test_mood_one_second_past_expiry_is_stale(now_ms: int) -> None:
    assert not is_mood_fresh(now_ms - 24 * HOUR_MS - 1_000, 24, now=now_ms)


def test_custom_expiry_window(now_ms: int) -> None:
    set_at = now_ms - 3 * HOUR_MS
    assert not is_mood_fresh(set_at, 2, now=now_ms)
    assert is_mood_fresh(set_at, 3, now=now_ms)


def test_default_expiry_is_one_day(now_ms: int) -> None:
    assert is_mood_fresh(now_ms - 23 * HOUR_MS, now=now_ms)
    assert not is_mood_fresh(now_ms - 25 * HOUR_MS, now=now_ms)


def test_missing_timestamp_is_not_fresh(now_ms: int) -> None:
    assert not is_mood_fresh(None, 24, now=now_ms)

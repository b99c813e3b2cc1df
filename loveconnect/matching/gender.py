"""Bidirectional gender-preference compatibility."""

from __future__ import annotations

from typing import Iterable

from ..models.user_profile import GenderIdentity, Interest


def _value(tag) -> str:
    return getattr(tag, "value", tag)


def is_interested(interested_in: Iterable, other_gender) -> bool:
    """Whether an ``interestedIn`` set accepts ``other_gender``.

    An empty set accepts nobody; only an explicit ``all`` acts as a wildcard.
    """

    wanted = {_value(tag) for tag in interested_in}
    return Interest.ALL.value in wanted or _value(other_gender) in wanted


def is_compatible(a: GenderIdentity, b: GenderIdentity) -> bool:
    return is_interested(a.interested_in, b.my_gender) and is_interested(
        b.interested_in, a.my_gender
    )


__all__ = ["is_compatible", "is_interested"]

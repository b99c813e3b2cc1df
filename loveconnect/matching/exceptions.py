"""Errors raised by candidate search."""

from __future__ import annotations


class MatchingError(ValueError):
    """Base exception for candidate search failures caused by the request."""


class InvalidQueryStateError(MatchingError):
    """Raised when the requester lacks data the query depends on (e.g. a location)."""


class InvalidRangeError(MatchingError):
    """Raised when the resolved age range is inverted."""


__all__ = [
    "InvalidQueryStateError",
    "InvalidRangeError",
    "MatchingError",
]

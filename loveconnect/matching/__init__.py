"""Pure matching rules; candidate search lives in ``matching.candidates``."""

from .age import birthdate_bounds, compute_age
from .distance import distance
from .exceptions import InvalidQueryStateError, InvalidRangeError, MatchingError
from .gender import is_compatible
from .mood import is_mood_fresh

__all__ = [
    "InvalidQueryStateError",
    "InvalidRangeError",
    "MatchingError",
    "birthdate_bounds",
    "compute_age",
    "distance",
    "is_compatible",
    "is_mood_fresh",
]

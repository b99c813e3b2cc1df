"""Age arithmetic shared by signup validation and candidate filtering."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Optional

DAYS_PER_YEAR = 365.25


def compute_age(date_of_birth: date, today: Optional[date] = None) -> int:
    today = today or date.today()
    return math.floor((today - date_of_birth).days / DAYS_PER_YEAR)


def birthdate_bounds(age_min: int, age_max: int, today: Optional[date] = None) -> tuple[date, date]:
    """Return the inclusive ``(earliest, latest)`` birth dates whose age falls in ``[age_min, age_max]``."""

    today = today or date.today()
    # age >= age_min  <=>  days >= ceil(age_min * 365.25)
    latest = today - timedelta(days=math.ceil(age_min * DAYS_PER_YEAR))
    # age <= age_max  <=>  days < (age_max + 1) * 365.25
    earliest = today - timedelta(days=math.ceil((age_max + 1) * DAYS_PER_YEAR) - 1)
    return earliest, latest


__all__ = ["DAYS_PER_YEAR", "birthdate_bounds", "compute_age"]

"""Great-circle distance between two ``(longitude, latitude)`` points."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Union

from ..models.user_profile import GeoPoint

EARTH_RADIUS_M = 6_371_000.0

PointLike = Union[GeoPoint, Sequence[Optional[float]], None]


def _coords(point: PointLike) -> Optional[tuple[float, float]]:
    if point is None:
        return None
    if isinstance(point, GeoPoint):
        raw = point.coordinates
    else:
        raw = point
    if len(raw) < 2 or raw[0] is None or raw[1] is None:
        return None
    return float(raw[0]), float(raw[1])


def distance(point_a: PointLike, point_b: PointLike) -> Optional[int]:
    """Return the haversine distance in whole meters, or ``None`` when a point is missing.

    ``(0, 0)`` is a real coordinate, not a missing one.
    """

    a = _coords(point_a)
    b = _coords(point_b)
    if a is None or b is None:
        return None

    lon1, lat1 = a
    lon2, lat2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    sin_dphi = math.sin(dphi / 2.0)
    sin_dlambda = math.sin(dlambda / 2.0)
    h = sin_dphi * sin_dphi + math.cos(phi1) * math.cos(phi2) * sin_dlambda * sin_dlambda
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return int(round(EARTH_RADIUS_M * c))


__all__ = ["EARTH_RADIUS_M", "distance"]

"""Great-circle distance and coordinate validation helpers."""

from __future__ import annotations

import math
from typing import Literal, Optional, Tuple

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = 6_371_000.0

LAT_MIN, LAT_MAX = -90.0, 90.0
LNG_MIN, LNG_MAX = -180.0, 180.0

Unit = Literal["km", "m"]


def haversine(lat1: float, lng1: float, lat2: float, lng2: float, unit: Unit = "m") -> float:
    """Return the great-circle distance between two points in ``unit``.

    Non-finite input yields NaN; callers validate coordinates first.
    """

    radius = EARTH_RADIUS_KM if unit == "km" else EARTH_RADIUS_M
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _to_float(value: object) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return None
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def is_valid_coordinate(lat: object, lng: object) -> bool:
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return LAT_MIN <= lat <= LAT_MAX and LNG_MIN <= lng <= LNG_MAX


def parse_coordinate(lat: object, lng: object) -> Optional[Tuple[float, float]]:
    """Coerce numeric or numeric-string input to a valid (lat, lng) pair, else None."""
    lat_f = _to_float(lat)
    lng_f = _to_float(lng)
    if lat_f is None or lng_f is None:
        return None
    if not is_valid_coordinate(lat_f, lng_f):
        return None
    return lat_f, lng_f

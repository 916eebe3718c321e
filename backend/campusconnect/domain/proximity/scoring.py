"""Compatibility scoring between two profiles."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from campusconnect.domain.proximity.geo import haversine
from campusconnect.domain.proximity.models import Profile, normalise_major

BASE_SCORE = 30
INTEREST_POINTS = 10
INTEREST_CAP = 30
MAJOR_POINTS = 15
SAME_YEAR_POINTS = 10
ADJACENT_YEAR_POINTS = 6
OUT_OF_RADIUS_PENALTY = 50
MAX_PROXIMITY_POINTS = 15


@dataclass(frozen=True, slots=True)
class CompatibilityScore:
    score: int
    distance_km: Optional[float]


def shared_interests(a: Profile, b: Profile) -> list[str]:
    other = set(b.normalised_interests)
    return [tag for tag in a.normalised_interests if tag in other]


def _year_points(a: Optional[int], b: Optional[int]) -> int:
    if not a or not b:
        return 0
    diff = abs(int(a) - int(b))
    if diff == 0:
        return SAME_YEAR_POINTS
    if diff == 1:
        return ADJACENT_YEAR_POINTS
    return 0


def score(a: Profile, b: Profile, radius_km: Optional[float] = None) -> CompatibilityScore:
    """Score ``b`` against ``a`` on a 0-100 scale.

    A falsy ``radius_km`` means no radius filter. The distance is only
    computed (and returned) when both profiles carry a valid coordinate.
    """
    total = BASE_SCORE
    total += min(len(shared_interests(a, b)) * INTEREST_POINTS, INTEREST_CAP)

    major_a = normalise_major(a.major)
    if major_a and major_a == normalise_major(b.major):
        total += MAJOR_POINTS

    total += _year_points(a.year, b.year)

    distance_km: Optional[float] = None
    coord_a, coord_b = a.coordinate, b.coordinate
    if coord_a is not None and coord_b is not None:
        distance_km = haversine(coord_a[0], coord_a[1], coord_b[0], coord_b[1], "km")
        if radius_km and distance_km > radius_km:
            total -= OUT_OF_RADIUS_PENALTY
        else:
            total += max(0, MAX_PROXIMITY_POINTS - min(MAX_PROXIMITY_POINTS, math.floor(distance_km)))

    return CompatibilityScore(score=max(0, min(100, total)), distance_km=distance_km)

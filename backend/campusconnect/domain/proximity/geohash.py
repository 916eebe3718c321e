"""Fixed-precision geohash buckets for bounded neighbourhood lookups.

A location is stored together with its geohash so that candidate discovery can
ask the store for an exact key match on the origin cell and its 8 neighbours
instead of scanning every profile.

At precision 6 a cell spans ~1.2 km (lng, at the equator) by ~0.6 km (lat), so
any point within 100 m of an origin lies in the origin cell or one of its
8 neighbours at all latitudes below ~85 degrees.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

BUCKET_PRECISION = 6

_BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
_DECODE_MAP: Dict[str, int] = {ch: idx for idx, ch in enumerate(_BASE32)}


def encode(lat: float, lng: float, precision: int = BUCKET_PRECISION) -> str:
    """Encode a coordinate as a geohash of ``precision`` characters."""
    if precision <= 0:
        raise ValueError("precision must be positive")
    lat_lo, lat_hi = -90.0, 90.0
    lng_lo, lng_hi = -180.0, 180.0
    chars: List[str] = []
    bit = 0
    ch = 0
    even = True  # even bits refine longitude
    while len(chars) < precision:
        if even:
            mid = (lng_lo + lng_hi) / 2
            if lng >= mid:
                ch = (ch << 1) | 1
                lng_lo = mid
            else:
                ch <<= 1
                lng_hi = mid
        else:
            mid = (lat_lo + lat_hi) / 2
            if lat >= mid:
                ch = (ch << 1) | 1
                lat_lo = mid
            else:
                ch <<= 1
                lat_hi = mid
        even = not even
        bit += 1
        if bit == 5:
            chars.append(_BASE32[ch])
            bit = 0
            ch = 0
    return "".join(chars)


def bounds(key: str) -> Tuple[float, float, float, float]:
    """Return ``(lat_lo, lat_hi, lng_lo, lng_hi)`` for a geohash cell."""
    if not key:
        raise ValueError("empty geohash")
    lat_lo, lat_hi = -90.0, 90.0
    lng_lo, lng_hi = -180.0, 180.0
    even = True
    for char in key.lower():
        try:
            value = _DECODE_MAP[char]
        except KeyError:
            raise ValueError(f"invalid geohash character: {char!r}") from None
        for shift in range(4, -1, -1):
            bit = (value >> shift) & 1
            if even:
                mid = (lng_lo + lng_hi) / 2
                if bit:
                    lng_lo = mid
                else:
                    lng_hi = mid
            else:
                mid = (lat_lo + lat_hi) / 2
                if bit:
                    lat_lo = mid
                else:
                    lat_hi = mid
            even = not even
    return lat_lo, lat_hi, lng_lo, lng_hi


def decode(key: str) -> Tuple[float, float]:
    """Return the centre ``(lat, lng)`` of a geohash cell."""
    lat_lo, lat_hi, lng_lo, lng_hi = bounds(key)
    return (lat_lo + lat_hi) / 2, (lng_lo + lng_hi) / 2


def _wrap_lng(lng: float) -> float:
    if lng >= 180.0:
        return lng - 360.0
    if lng < -180.0:
        return lng + 360.0
    return lng


def neighbors(key: str) -> List[str]:
    """Return the 8 cells adjacent to ``key`` (N, NE, E, SE, S, SW, W, NW).

    Longitude wraps across the antimeridian. At the poles there is no cell
    further north/south, so the row is clamped to the polar row and the
    result may repeat keys; callers de-duplicate.
    """
    lat_lo, lat_hi, lng_lo, lng_hi = bounds(key)
    precision = len(key)
    lat_step = lat_hi - lat_lo
    lng_step = lng_hi - lng_lo
    lat_c = (lat_lo + lat_hi) / 2
    lng_c = (lng_lo + lng_hi) / 2
    out: List[str] = []
    for dlat, dlng in ((1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1)):
        lat = min(max(lat_c + dlat * lat_step, -90.0 + lat_step / 2), 90.0 - lat_step / 2)
        lng = _wrap_lng(lng_c + dlng * lng_step)
        out.append(encode(lat, lng, precision))
    return out


def neighbourhood(key: str) -> List[str]:
    """Return ``key`` followed by its distinct neighbours."""
    keys = [key]
    for neighbour in neighbors(key):
        if neighbour not in keys:
            keys.append(neighbour)
    return keys

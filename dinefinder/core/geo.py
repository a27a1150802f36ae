"""Ring geometry for the incremental nearby scan.

A scan is a fixed plan of 25 probe points: the base center (index 0), then
twelve points on an inner ring (1-12) and twelve on an outer ring (13-24),
each ring stepping 30 degrees counter-clockwise from due east.

Offsets use a flat-earth approximation, which is only good for the sub-1.5 km
ring radii produced here.
"""
from __future__ import annotations

import math
import re
from typing import Any, Tuple

from ..providers.base import GeoPoint

MAX_SCAN_INDEX = 24
POINTS_PER_RING = 12
RING_STEP_DEG = 30.0
METERS_PER_DEG_LAT = 111320.0

DEFAULT_RADIUS_M = 5000
MAX_RADIUS_KM = 10.0

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def ring_radii(radius_m: float) -> Tuple[float, float]:
    """Inner and outer ring radii in meters for a search radius."""
    r1 = clamp(radius_m * 0.45, 150.0, 800.0)
    r2 = clamp(radius_m * 0.75, 250.0, 1400.0)
    return r1, r2


def normalize_cursor(raw: Any) -> int:
    """
    Coerce a caller-supplied scan index into [0, 24]; anything else becomes 0.

    Only the leading integer counts, so "2.5" is 2 and "3abc" is 3.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return 0
    value = int(match.group(1))
    if value < 0 or value > MAX_SCAN_INDEX:
        return 0
    return value


def offset_point(base: GeoPoint, east_m: float, north_m: float) -> GeoPoint:
    d_lat = north_m / METERS_PER_DEG_LAT
    d_lng = east_m / (METERS_PER_DEG_LAT * math.cos(math.radians(base.lat)))
    return GeoPoint(lat=base.lat + d_lat, lng=base.lng + d_lng)


def compute_scan_center(base: GeoPoint, cursor: int, radius_m: float) -> GeoPoint:
    if cursor == 0:
        return base

    r1, r2 = ring_radii(radius_m)
    if 1 <= cursor <= POINTS_PER_RING:
        angle = math.radians((cursor - 1) * RING_STEP_DEG)
        r = r1
    elif POINTS_PER_RING < cursor <= MAX_SCAN_INDEX:
        angle = math.radians((cursor - POINTS_PER_RING - 1) * RING_STEP_DEG)
        r = r2
    else:
        return base

    return offset_point(base, r * math.cos(angle), r * math.sin(angle))

from __future__ import annotations

import math
from typing import Any, Optional

from ...providers.base import GeoPoint
from ..errors import ScanError
from ..geo import DEFAULT_RADIUS_M, MAX_RADIUS_KM, normalize_cursor
from ..workflow_types import ScanContext


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def _parse_float(value: Any) -> Optional[float]:
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def radius_km_to_meters(radius_km: Any) -> int:
    if not _present(radius_km):
        return DEFAULT_RADIUS_M
    km = _parse_float(radius_km)
    if km is None or km < 0 or km > MAX_RADIUS_KM:
        raise ScanError("validation", "radiusKm must be between 0 and 10")
    # half-up, so 2.0005 km is 2001 m
    return int(math.floor(km * 1000 + 0.5))


def parse_center(lat: Any, lng: Any) -> Optional[GeoPoint]:
    """None when no coordinate pair was supplied; raises on a malformed pair."""
    if not (_present(lat) and _present(lng)):
        return None
    lat_f, lng_f = _parse_float(lat), _parse_float(lng)
    if lat_f is None or lng_f is None:
        raise ScanError("validation", "Invalid lat/lng parameters")
    point = GeoPoint(lat=lat_f, lng=lng_f)
    if not point.is_valid():
        raise ScanError("validation", "Invalid lat/lng parameters")
    return point


class ValidateRequestNode:
    """Checks configuration and caller input before any remote call is made."""

    name = "validate_request"

    def __init__(self, provider_configured: bool):
        self.provider_configured = provider_configured

    async def run(self, ctx: ScanContext) -> ScanContext:
        if not self.provider_configured:
            raise ScanError("config", "GOOGLE_MAPS_API_KEY is not configured")

        req = ctx.request
        ctx.cursor = normalize_cursor(req.scan_index)
        ctx.explicit_center = parse_center(req.lat, req.lng)
        if ctx.explicit_center is None and not (req.query or "").strip():
            raise ScanError("validation", "query parameter or lat/lng parameters are required")
        ctx.radius_m = radius_km_to_meters(req.radius_km)
        return ctx

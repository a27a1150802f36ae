from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..providers.base import EnrichedResult, GeoPoint


@dataclass(frozen=True)
class ScanRequest:
    """One page request as received from the caller; values are not yet validated."""
    query: Optional[str] = None
    lat: Any = None
    lng: Any = None
    radius_km: Any = None
    scan_index: Any = 0


@dataclass(frozen=True)
class ScanPage:
    center: GeoPoint
    radius_m: int
    results: List[EnrichedResult]
    cursor: int
    next_cursor: int
    has_more: bool


@dataclass
class ScanContext:
    request: ScanRequest

    cursor: int = 0
    radius_m: int = 0
    explicit_center: Optional[GeoPoint] = None
    base_center: Optional[GeoPoint] = None
    probe_center: Optional[GeoPoint] = None

    place_ids: List[str] = field(default_factory=list)
    results: List[EnrichedResult] = field(default_factory=list)
    page: Optional[ScanPage] = None

# Provider interfaces and dataclasses.
# dinefinder/providers/base.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Protocol

logger = logging.getLogger(__name__)


class PlacesApiError(RuntimeError):
    """Transport or provider-level failure from the places/geocoding service."""


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def is_valid(self) -> bool:
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0


class PriceLevel(str, Enum):
    INEXPENSIVE = "$"
    MODERATE = "$$"
    EXPENSIVE = "$$$"
    VERY_EXPENSIVE = "$$$$"


# Every value of the Places API v1 PriceLevel enum. UNSPECIFIED maps to unset.
_PROVIDER_PRICE_LEVELS = {
    "PRICE_LEVEL_UNSPECIFIED": None,
    "PRICE_LEVEL_FREE": PriceLevel.INEXPENSIVE,
    "PRICE_LEVEL_INEXPENSIVE": PriceLevel.INEXPENSIVE,
    "PRICE_LEVEL_MODERATE": PriceLevel.MODERATE,
    "PRICE_LEVEL_EXPENSIVE": PriceLevel.EXPENSIVE,
    "PRICE_LEVEL_VERY_EXPENSIVE": PriceLevel.VERY_EXPENSIVE,
}


def normalize_price_level(level: Optional[str]) -> Optional[PriceLevel]:
    if level is None:
        return None
    if level not in _PROVIDER_PRICE_LEVELS:
        logger.warning("Unrecognized provider price level %r; leaving unset", level)
        return None
    return _PROVIDER_PRICE_LEVELS[level]


@dataclass(frozen=True)
class Candidate:
    """An unenriched place returned by a text search."""
    place_id: str
    name: str
    address: str
    lat: float
    lng: float
    types: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class EnrichedResult:
    """
    A restaurant with the contact/pricing details the UI needs.
    `place_id` is the natural key for every merge and de-duplication.
    """
    place_id: str
    name: str
    address: str
    maps_url: str
    reservable: bool = False
    price_level: Optional[PriceLevel] = None
    dine_in: Optional[bool] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    signed: bool = False

    def with_signed(self, signed: bool) -> "EnrichedResult":
        return replace(self, signed=signed)


class PlacesGateway(Protocol):
    async def geocode(self, text: str) -> Optional[GeoPoint]:
        """Returns the first geocoding result, or None when nothing matched."""
        ...

    async def text_search_candidates(self, text: str, *, max_results: int = 5) -> List[Candidate]:
        ...

    async def nearby_search(self, center: GeoPoint, radius_m: int) -> List[str]:
        """Returns restaurant place ids ranked by distance from `center`."""
        ...

    async def get_details(self, place_id: str) -> Optional[EnrichedResult]:
        """Returns None when the provider does not know the place."""
        ...

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

import pytest

from dinefinder.core.workflow_types import ScanPage
from dinefinder.providers.base import Candidate, EnrichedResult, GeoPoint, PlacesApiError, PriceLevel

TAIPEI = GeoPoint(lat=25.0637, lng=121.5266)


def make_result(place_id: str, **overrides) -> EnrichedResult:
    fields = dict(
        place_id=place_id,
        name=f"Restaurant {place_id}",
        address=f"{place_id} Road, Taipei",
        maps_url=f"https://maps.google.com/?cid={place_id}",
        reservable=False,
        price_level=PriceLevel.MODERATE,
        dine_in=True,
        lat=TAIPEI.lat,
        lng=TAIPEI.lng,
    )
    fields.update(overrides)
    return EnrichedResult(**fields)


def make_page(cursor: int, place_ids: Iterable[str], center: GeoPoint = TAIPEI, radius_m: int = 2000) -> ScanPage:
    return ScanPage(
        center=center,
        radius_m=radius_m,
        results=[make_result(pid) for pid in place_ids],
        cursor=cursor,
        next_cursor=cursor + 1,
        has_more=cursor < 24,
    )


class FakePlaces:
    """In-memory PlacesGateway that records every call."""

    def __init__(
        self,
        geocode_result: Optional[GeoPoint] = TAIPEI,
        nearby: Optional[Callable[[int], List[str]] | List[str]] = None,
        failing: Iterable[str] = (),
        missing: Iterable[str] = (),
        candidates: Optional[List[Candidate]] = None,
        details_overrides: Optional[Dict[str, dict]] = None,
    ):
        self.geocode_result = geocode_result
        self.nearby = nearby if nearby is not None else ["p1", "p2", "p3"]
        self.failing = set(failing)
        self.missing = set(missing)
        self.candidates = candidates or []
        self.details_overrides = details_overrides or {}
        self.geocode_calls: List[str] = []
        self.nearby_calls: List[tuple] = []
        self.detail_calls: List[str] = []
        self.nearby_error: Optional[Exception] = None

    async def geocode(self, text: str) -> Optional[GeoPoint]:
        self.geocode_calls.append(text)
        if isinstance(self.geocode_result, Exception):
            raise self.geocode_result
        return self.geocode_result

    async def text_search_candidates(self, text: str, *, max_results: int = 5) -> List[Candidate]:
        return self.candidates[:max_results]

    async def nearby_search(self, center: GeoPoint, radius_m: int) -> List[str]:
        self.nearby_calls.append((center, radius_m))
        if self.nearby_error is not None:
            raise self.nearby_error
        if callable(self.nearby):
            return self.nearby(len(self.nearby_calls) - 1)
        return list(self.nearby)

    async def get_details(self, place_id: str) -> Optional[EnrichedResult]:
        self.detail_calls.append(place_id)
        if place_id in self.failing:
            raise PlacesApiError(f"details for {place_id} failed")
        if place_id in self.missing:
            return None
        return make_result(place_id, **self.details_overrides.get(place_id, {}))


class BrokenSignedRepo:
    async def signed_among(self, place_ids):
        raise RuntimeError("relation signed_restaurants does not exist")

    async def is_signed(self, place_id):
        raise RuntimeError("relation signed_restaurants does not exist")


@pytest.fixture
def places():
    return FakePlaces()

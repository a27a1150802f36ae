from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Optional, List, Literal

from ..core.errors import ErrorStep
from ..core.workflow_types import ScanPage
from ..providers.base import Candidate, EnrichedResult

PriceSymbol = Literal["$", "$$", "$$$", "$$$$"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Center(CamelModel):
    lat: float
    lng: float


class SearchResult(CamelModel):
    place_id: str
    name: str
    address: str
    maps_url: str
    reservable: bool = False
    price_level: Optional[PriceSymbol] = None
    dine_in: Optional[bool] = None
    signed: bool = False
    phone: Optional[str] = None
    website: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    @classmethod
    def from_result(cls, r: EnrichedResult) -> "SearchResult":
        return cls(
            place_id=r.place_id,
            name=r.name,
            address=r.address,
            maps_url=r.maps_url,
            reservable=r.reservable,
            price_level=r.price_level.value if r.price_level else None,
            dine_in=r.dine_in,
            signed=r.signed,
            phone=r.phone,
            website=r.website,
            lat=r.lat,
            lng=r.lng,
        )


class SearchResponse(CamelModel):
    center: Center
    radius_meters: int
    results: List[SearchResult]
    scan_index: int
    next_scan_index: int
    has_more: bool

    @classmethod
    def from_page(cls, page: ScanPage) -> "SearchResponse":
        return cls(
            center=Center(lat=page.center.lat, lng=page.center.lng),
            radius_meters=page.radius_m,
            results=[SearchResult.from_result(r) for r in page.results],
            scan_index=page.cursor,
            next_scan_index=page.next_cursor,
            has_more=page.has_more,
        )


class ResolveCandidate(CamelModel):
    place_id: str
    name: str
    address: str
    lat: float
    lng: float
    types: List[str] = []

    @classmethod
    def from_candidate(cls, c: Candidate) -> "ResolveCandidate":
        return cls(place_id=c.place_id, name=c.name, address=c.address, lat=c.lat, lng=c.lng, types=list(c.types))


class ResolveResponse(CamelModel):
    candidates: List[ResolveCandidate]


class ErrorDetail(CamelModel):
    step: ErrorStep
    message: str


class ErrorResponse(CamelModel):
    error: ErrorDetail


class VisitedList(CamelModel):
    place_ids: List[str]


class VisitedWrite(CamelModel):
    """Either a single toggle ({placeId, visited}) or a bulk import ({placeIds})."""
    place_id: Any = None
    visited: Any = None
    place_ids: Any = None


class VisitedWriteResponse(CamelModel):
    ok: bool = True
    imported: Optional[int] = None


class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class MeResponse(CamelModel):
    authenticated: bool
    username: Optional[str] = None

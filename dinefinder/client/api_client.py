# dinefinder/client/api_client.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..core.errors import ScanError
from ..core.workflow_types import ScanPage
from ..providers.base import Candidate, EnrichedResult, GeoPoint, PriceLevel
from .session import ScanTarget


class ApiError(RuntimeError):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


def result_from_json(d: Dict[str, Any]) -> EnrichedResult:
    price = d.get("priceLevel")
    return EnrichedResult(
        place_id=d["placeId"],
        name=d.get("name") or "",
        address=d.get("address") or "",
        maps_url=d.get("mapsUrl") or "",
        reservable=bool(d.get("reservable")),
        price_level=PriceLevel(price) if price else None,
        dine_in=d.get("dineIn"),
        phone=d.get("phone"),
        website=d.get("website"),
        lat=d.get("lat"),
        lng=d.get("lng"),
        signed=bool(d.get("signed")),
    )


def page_from_json(d: Dict[str, Any]) -> ScanPage:
    return ScanPage(
        center=GeoPoint(lat=d["center"]["lat"], lng=d["center"]["lng"]),
        radius_m=int(d["radiusMeters"]),
        results=[result_from_json(r) for r in d.get("results") or []],
        cursor=int(d["scanIndex"]),
        next_cursor=int(d["nextScanIndex"]),
        has_more=bool(d["hasMore"]),
    )


class DineFinderClient:
    """
    Thin async client for the DineFinder HTTP API. Session cookies are kept
    by the underlying httpx client, so login carries over to visited calls.
    """

    def __init__(self, base_url: str = "", client: Optional[httpx.AsyncClient] = None, timeout_s: float = 30.0):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_s)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self._client.aclose()

    async def _json(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        resp = await self._client.request(method, path, **kwargs)
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code >= 400:
            err = data.get("error") if isinstance(data, dict) else None
            if isinstance(err, dict) and "step" in err:
                raise ScanError(err["step"], err.get("message", ""), status_code=resp.status_code)
            detail = err or (data.get("detail") if isinstance(data, dict) else None) or resp.text
            raise ApiError(resp.status_code, str(detail))
        return data

    async def fetch_page(self, target: ScanTarget, cursor: int) -> ScanPage:
        params: Dict[str, Any] = {"radiusKm": target.radius_km, "scanIndex": cursor}
        if target.center is not None:
            params["lat"] = target.center.lat
            params["lng"] = target.center.lng
        else:
            params["query"] = target.query
        return page_from_json(await self._json("GET", "/api/search", params=params))

    async def resolve(self, query: str) -> List[Candidate]:
        data = await self._json("GET", "/api/resolve", params={"query": query})
        return [
            Candidate(
                place_id=c["placeId"],
                name=c.get("name") or "",
                address=c.get("address") or "",
                lat=c["lat"],
                lng=c["lng"],
                types=c.get("types") or [],
            )
            for c in data.get("candidates") or []
        ]

    async def login(self, username: str, password: str) -> None:
        await self._json("POST", "/api/auth/login", json={"username": username, "password": password})

    async def logout(self) -> None:
        await self._json("POST", "/api/auth/logout")

    async def me(self) -> Optional[str]:
        data = await self._json("GET", "/api/auth/me")
        return data.get("username") if data.get("authenticated") else None

    async def visited_place_ids(self) -> List[str]:
        return list((await self._json("GET", "/api/visited")).get("placeIds") or [])

    async def set_visited(self, place_id: str, visited: bool) -> None:
        await self._json("POST", "/api/visited", json={"placeId": place_id, "visited": visited})

    async def import_visited(self, place_ids: Iterable[str]) -> int:
        data = await self._json("POST", "/api/visited", json={"placeIds": list(place_ids)})
        return int(data.get("imported") or 0)

# dinefinder/providers/google_places.py
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .base import Candidate, EnrichedResult, GeoPoint, PlacesApiError, normalize_price_level

logger = logging.getLogger(__name__)

_TRANSIENT_STATUSES = (429, 500, 502, 503, 504)


def _safe_get(d: Dict[str, Any], path: List[str], default=None):
    cur: Any = d
    for key in path:
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


@dataclass(frozen=True)
class GooglePlacesConfig:
    api_key: str
    # e.g. "zh-TW" or "en"
    language_code: Optional[str] = None
    # e.g. "TW" for a Taiwan bias in results
    region_code: Optional[str] = None

    # Per-call timeout; a stalled detail fetch must not hold up its batch for long.
    timeout_s: float = 10.0
    max_retries: int = 2
    base_backoff_s: float = 0.4

    nearby_max_results: int = 20
    nearby_included_type: str = "restaurant"

    # Field masks
    resolve_field_mask: str = (
        "places.id,"
        "places.displayName,"
        "places.formattedAddress,"
        "places.location,"
        "places.types"
    )
    nearby_field_mask: str = "places.id,places.displayName,places.formattedAddress"
    details_field_mask: str = (
        "id,"
        "displayName,"
        "formattedAddress,"
        "googleMapsUri,"
        "reservable,"
        "priceLevel,"
        "dineIn,"
        "location,"
        "nationalPhoneNumber,"
        "internationalPhoneNumber,"
        "websiteUri"
    )


def parse_place_details(details: Dict[str, Any]) -> EnrichedResult:
    place_id = _safe_get(details, ["id"])
    if not place_id:
        raise PlacesApiError("Place Details response has no id")
    loc = _safe_get(details, ["location"], {}) or {}
    dine_in = details.get("dineIn")
    return EnrichedResult(
        place_id=str(place_id),
        name=_safe_get(details, ["displayName", "text"], "") or "",
        address=details.get("formattedAddress") or "",
        maps_url=details.get("googleMapsUri") or "",
        reservable=bool(details.get("reservable") or False),
        price_level=normalize_price_level(details.get("priceLevel")),
        dine_in=dine_in if isinstance(dine_in, bool) else None,
        phone=details.get("nationalPhoneNumber") or details.get("internationalPhoneNumber"),
        website=details.get("websiteUri"),
        lat=loc.get("latitude"),
        lng=loc.get("longitude"),
    )


class GooglePlacesProvider:
    """
    Google Maps provider:
      - GET  https://maps.googleapis.com/maps/api/geocode/json
      - POST https://places.googleapis.com/v1/places:searchText
      - POST https://places.googleapis.com/v1/places:searchNearby
      - GET  https://places.googleapis.com/v1/places/{place_id}

    Auth header (Places API v1):
      - X-Goog-Api-Key: <key>

    Field masks:
      - X-Goog-FieldMask: <comma-separated fields>
    """

    _BASE_URL = "https://places.googleapis.com/v1"
    _GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, cfg: GooglePlacesConfig, client: Optional[httpx.AsyncClient] = None):
        if not cfg.api_key:
            raise ValueError("GooglePlacesConfig.api_key is required")
        self.cfg = cfg
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.cfg.timeout_s)
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("GooglePlacesProvider must be used with 'async with' or provide a client.")
        return self._client

    async def _request_with_retries(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        missing_ok: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """
        Retries on transient failures (429/5xx/timeouts) with exponential backoff + jitter.
        Other error statuses fail immediately with the provider's body in the message.
        Returns None for a 404 when `missing_ok` is set.
        """
        last_err: Optional[Exception] = None
        for attempt in range(self.cfg.max_retries + 1):
            try:
                resp = await self.client.request(method, url, headers=headers, json=json, params=params)
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                last_err = e
            else:
                if resp.status_code in _TRANSIENT_STATUSES:
                    last_err = PlacesApiError(f"transient status {resp.status_code}: {resp.text}")
                elif missing_ok and resp.status_code == 404:
                    return None
                elif resp.status_code >= 400:
                    raise PlacesApiError(f"status {resp.status_code}: {resp.text}")
                else:
                    try:
                        data = resp.json()
                    except ValueError as e:
                        raise PlacesApiError(f"invalid JSON from {url}") from e
                    if not isinstance(data, dict):
                        raise PlacesApiError("Expected JSON object response")
                    return data

            if attempt >= self.cfg.max_retries:
                break
            backoff = self.cfg.base_backoff_s * (2 ** attempt)
            jitter = random.random() * 0.25
            logger.warning("Retrying %s %s after %s (attempt %d)", method, url, last_err, attempt + 1)
            await asyncio.sleep(backoff + jitter)
        raise PlacesApiError(f"request failed after retries: {last_err}") from last_err

    def _headers(self, field_mask: str) -> Dict[str, str]:
        h = {
            "X-Goog-Api-Key": self.cfg.api_key,
            "X-Goog-FieldMask": field_mask,
            "Content-Type": "application/json",
        }
        return h

    async def geocode(self, text: str) -> Optional[GeoPoint]:
        params: Dict[str, Any] = {"address": text, "key": self.cfg.api_key}
        if self.cfg.language_code:
            params["language"] = self.cfg.language_code
        if self.cfg.region_code:
            params["region"] = self.cfg.region_code.lower()

        data = await self._request_with_retries("GET", self._GEOCODE_URL, params=params)
        status = data.get("status")
        results = data.get("results") or []
        if status == "ZERO_RESULTS" or (status == "OK" and not results):
            return None
        if status != "OK":
            raise PlacesApiError(f"Geocoding failed: {status}")

        loc = _safe_get(results[0], ["geometry", "location"], {}) or {}
        lat, lng = loc.get("lat"), loc.get("lng")
        if lat is None or lng is None:
            raise PlacesApiError("Geocoding result has no location")
        return GeoPoint(lat=float(lat), lng=float(lng))

    async def text_search_candidates(self, text: str, *, max_results: int = 5) -> List[Candidate]:
        body: Dict[str, Any] = {"textQuery": text, "maxResultCount": max_results}
        if self.cfg.language_code:
            body["languageCode"] = self.cfg.language_code
        if self.cfg.region_code:
            body["regionCode"] = self.cfg.region_code

        data = await self._request_with_retries(
            "POST",
            f"{self._BASE_URL}/places:searchText",
            headers=self._headers(self.cfg.resolve_field_mask),
            json=body,
        )

        candidates: List[Candidate] = []
        for p in data.get("places", []) or []:
            loc = p.get("location")
            name = _safe_get(p, ["displayName", "text"])
            if not p.get("id") or not loc or name is None:
                continue
            candidates.append(
                Candidate(
                    place_id=str(p["id"]),
                    name=name or "",
                    address=p.get("formattedAddress") or "",
                    lat=float(loc["latitude"]),
                    lng=float(loc["longitude"]),
                    types=[str(t) for t in p.get("types", []) or []],
                )
            )
        return candidates

    async def nearby_search(self, center: GeoPoint, radius_m: int) -> List[str]:
        body: Dict[str, Any] = {
            "includedTypes": [self.cfg.nearby_included_type],
            "maxResultCount": self.cfg.nearby_max_results,
            "rankPreference": "DISTANCE",
            "locationRestriction": {
                "circle": {
                    "center": {"latitude": center.lat, "longitude": center.lng},
                    "radius": float(radius_m),
                }
            },
        }
        if self.cfg.language_code:
            body["languageCode"] = self.cfg.language_code

        data = await self._request_with_retries(
            "POST",
            f"{self._BASE_URL}/places:searchNearby",
            headers=self._headers(self.cfg.nearby_field_mask),
            json=body,
        )
        places = data.get("places", []) or []
        return [str(p["id"]) for p in places if isinstance(p, dict) and p.get("id")]

    async def get_details(self, place_id: str) -> Optional[EnrichedResult]:
        params = {"languageCode": self.cfg.language_code} if self.cfg.language_code else None
        details = await self._request_with_retries(
            "GET",
            f"{self._BASE_URL}/places/{place_id}",
            headers=self._headers(self.cfg.details_field_mask),
            params=params,
            missing_ok=True,
        )
        if details is None:
            return None
        return parse_place_details(details)

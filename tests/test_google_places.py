import asyncio
import json
import logging

import httpx
import pytest

from dinefinder.providers.base import GeoPoint, PlacesApiError, PriceLevel
from dinefinder.providers.google_places import GooglePlacesConfig, GooglePlacesProvider


def make_provider(handler, **cfg):
    cfg.setdefault("base_backoff_s", 0.0)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GooglePlacesProvider(GooglePlacesConfig(api_key="test-key", **cfg), client=client)


def run(provider, method, *args, **kwargs):
    async def go():
        async with provider:
            return await getattr(provider, method)(*args, **kwargs)

    return asyncio.run(go())


def test_requires_api_key():
    with pytest.raises(ValueError):
        GooglePlacesProvider(GooglePlacesConfig(api_key=""))


def test_nearby_search_request_shape():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"places": [{"id": "a"}, {"id": "b"}, {}]})

    ids = run(make_provider(handler), "nearby_search", GeoPoint(25.0, 121.5), 2000)
    assert ids == ["a", "b"]
    assert seen["url"].endswith("/v1/places:searchNearby")
    assert seen["headers"]["X-Goog-Api-Key"] == "test-key"
    assert seen["headers"]["X-Goog-FieldMask"].startswith("places.id")
    body = seen["body"]
    assert body["includedTypes"] == ["restaurant"]
    assert body["maxResultCount"] == 20
    assert body["rankPreference"] == "DISTANCE"
    assert body["locationRestriction"]["circle"] == {
        "center": {"latitude": 25.0, "longitude": 121.5},
        "radius": 2000.0,
    }


def test_nearby_search_without_places_is_empty():
    ids = run(make_provider(lambda r: httpx.Response(200, json={})), "nearby_search", GeoPoint(0, 0), 100)
    assert ids == []


def test_details_are_normalized():
    payload = {
        "id": "abc",
        "displayName": {"text": "Din Tai Fung"},
        "formattedAddress": "No. 194, Section 2, Xinyi Rd",
        "googleMapsUri": "https://maps.google.com/?cid=1",
        "reservable": True,
        "priceLevel": "PRICE_LEVEL_MODERATE",
        "internationalPhoneNumber": "+886 2 2321 8928",
        "location": {"latitude": 25.033, "longitude": 121.529},
    }
    result = run(make_provider(lambda r: httpx.Response(200, json=payload)), "get_details", "abc")
    assert result.place_id == "abc"
    assert result.name == "Din Tai Fung"
    assert result.reservable is True
    assert result.price_level is PriceLevel.MODERATE
    assert result.dine_in is None
    assert result.phone == "+886 2 2321 8928"
    assert result.website is None
    assert (result.lat, result.lng) == (25.033, 121.529)
    assert result.signed is False


@pytest.mark.parametrize(
    "level, expected",
    [
        ("PRICE_LEVEL_FREE", PriceLevel.INEXPENSIVE),
        ("PRICE_LEVEL_INEXPENSIVE", PriceLevel.INEXPENSIVE),
        ("PRICE_LEVEL_EXPENSIVE", PriceLevel.EXPENSIVE),
        ("PRICE_LEVEL_VERY_EXPENSIVE", PriceLevel.VERY_EXPENSIVE),
        ("PRICE_LEVEL_UNSPECIFIED", None),
    ],
)
def test_price_levels(level, expected):
    payload = {"id": "abc", "priceLevel": level}
    result = run(make_provider(lambda r: httpx.Response(200, json=payload)), "get_details", "abc")
    assert result.price_level is expected


def test_unknown_price_level_is_unset_and_logged(caplog):
    payload = {"id": "abc", "priceLevel": "PRICE_LEVEL_LUXURY"}
    with caplog.at_level(logging.WARNING):
        result = run(make_provider(lambda r: httpx.Response(200, json=payload)), "get_details", "abc")
    assert result.price_level is None
    assert "PRICE_LEVEL_LUXURY" in caplog.text


def test_details_not_found_is_none():
    assert run(make_provider(lambda r: httpx.Response(404, json={})), "get_details", "gone") is None


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, text="INVALID_ARGUMENT")

    with pytest.raises(PlacesApiError, match="INVALID_ARGUMENT"):
        run(make_provider(handler), "get_details", "abc")
    assert len(calls) == 1


def test_transient_errors_are_retried():
    responses = [httpx.Response(503, text="busy"), httpx.Response(200, json={"id": "abc"})]

    def handler(request):
        return responses.pop(0)

    result = run(make_provider(handler, max_retries=2), "get_details", "abc")
    assert result.place_id == "abc"
    assert responses == []


def test_retries_exhausted():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, text="RESOURCE_EXHAUSTED")

    with pytest.raises(PlacesApiError, match="RESOURCE_EXHAUSTED"):
        run(make_provider(handler, max_retries=1), "nearby_search", GeoPoint(0, 0), 10)
    assert len(calls) == 2


def test_non_object_json_is_rejected():
    with pytest.raises(PlacesApiError):
        run(make_provider(lambda r: httpx.Response(200, json=["a"])), "nearby_search", GeoPoint(0, 0), 10)


def test_geocode_takes_first_result():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "results": [
                    {"geometry": {"location": {"lat": 25.0637, "lng": 121.5266}}},
                    {"geometry": {"location": {"lat": 0, "lng": 0}}},
                ],
            },
        )

    point = run(make_provider(handler, region_code="TW"), "geocode", "中山區")
    assert point == GeoPoint(lat=25.0637, lng=121.5266)
    assert seen["params"]["address"] == "中山區"
    assert seen["params"]["key"] == "test-key"
    assert seen["params"]["region"] == "tw"


def test_geocode_zero_results_is_none():
    resp = httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
    assert run(make_provider(lambda r: resp), "geocode", "nowhere") is None


def test_geocode_denied_raises():
    resp = httpx.Response(200, json={"status": "REQUEST_DENIED", "results": []})
    with pytest.raises(PlacesApiError, match="REQUEST_DENIED"):
        run(make_provider(lambda r: resp), "geocode", "x")


def test_text_search_drops_places_without_location():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "places": [
                    {
                        "id": "a",
                        "displayName": {"text": "Zhongshan Station"},
                        "formattedAddress": "Taipei",
                        "location": {"latitude": 25.05, "longitude": 121.52},
                        "types": ["subway_station"],
                    },
                    {"id": "b", "displayName": {"text": "No location"}},
                ]
            },
        )

    candidates = run(make_provider(handler), "text_search_candidates", "中山", max_results=5)
    assert seen["body"]["maxResultCount"] == 5
    assert [c.place_id for c in candidates] == ["a"]
    assert candidates[0].types == ["subway_station"]

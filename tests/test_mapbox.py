import asyncio

import httpx
import pytest

from app import config
from app.cache import build_reverse_geocode_key
from app.services.mapbox import MapboxClient


def _client(handler, token="pk.test"):
    return MapboxClient(
        token=token,
        base_url="https://api.mapbox.test",
        language="fa",
        transport=httpx.MockTransport(handler),
    )


def test_reverse_geocode_returns_first_place_name():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(
            200, json={"features": [{"place_name": "Tehran, Valiasr"}, {"place_name": "Other"}]}
        )

    name = asyncio.run(_client(handler).reverse_geocode(35.7, 51.4))
    assert name == "Tehran, Valiasr"
    assert seen["url"].path == "/geocoding/v5/mapbox.places/51.4,35.7.json"
    assert seen["url"].params["language"] == "fa"
    assert seen["url"].params["limit"] == "1"
    assert seen["url"].params["access_token"] == "pk.test"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"features": []}),
        httpx.Response(200, json={}),
    ],
)
def test_reverse_geocode_degrades_to_none(response):
    assert asyncio.run(_client(lambda request: response).reverse_geocode(1, 2)) is None


def test_reverse_geocode_network_error():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    assert asyncio.run(_client(handler).reverse_geocode(1, 2)) is None


def test_no_token_skips_the_request():
    def handler(request):
        raise AssertionError("should not be called")

    client = _client(handler, token=None)
    assert asyncio.run(client.reverse_geocode(1, 2)) is None
    assert asyncio.run(client.get_driving_directions({"lat": 1, "lng": 2}, {"lat": 3, "lng": 4})) is None


def test_driving_directions():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(
            200,
            json={
                "routes": [
                    {
                        "geometry": {"coordinates": [[51.4, 35.7], [51.41, 35.71]]},
                        "duration": 389.0,
                    }
                ]
            },
        )

    result = asyncio.run(
        _client(handler).get_driving_directions({"lat": 35.7, "lng": 51.4}, {"lat": 35.71, "lng": 51.41})
    )
    assert result == {
        "coordinates": [{"lat": 35.7, "lng": 51.4}, {"lat": 35.71, "lng": 51.41}],
        "durationMinutes": 6,
    }
    assert seen["url"].path == "/directions/v5/mapbox/driving/51.4,35.7;51.41,35.71"
    assert seen["url"].params["geometries"] == "geojson"
    assert seen["url"].params["overview"] == "full"


def test_driving_directions_without_routes():
    client = _client(lambda request: httpx.Response(200, json={"routes": []}))
    assert asyncio.run(client.get_driving_directions({"lat": 0, "lng": 0}, {"lat": 1, "lng": 1})) is None


def test_reverse_geocode_cache_key():
    assert build_reverse_geocode_key(35.123456, 51.987654, "fa") == "geo:reverse:fa:35.1235:51.9877"


def test_maps_route_without_token(client, monkeypatch):
    monkeypatch.setattr(config, "MAPBOX_TOKEN", None)

    response = client.get("/maps/reverse-geocode", params={"lat": 35.7, "lng": 51.4})
    assert response.status_code == 200
    assert response.json() == {"placeName": None}

    directions = client.get(
        "/maps/directions", params={"startLat": 35.7, "startLng": 51.4, "endLat": 35.8, "endLng": 51.5}
    )
    assert directions.status_code == 200
    assert directions.json() is None

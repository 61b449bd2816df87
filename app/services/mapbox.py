"""
Mapbox forwarding client
Reverse geocoding for address labels and driving directions for the live
map. Failures degrade to None so the map keeps working without a place name
or route.
"""

import logging
from typing import Optional

import httpx

from .. import config
from ..cache import build_reverse_geocode_key, cache

logger = logging.getLogger(__name__)


class MapboxClient:
    """Thin async wrapper over the Mapbox geocoding and directions APIs"""

    def __init__(
        self,
        token: Optional[str],
        base_url: str = "https://api.mapbox.com",
        language: str = "fa",
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _get_json(self, url: str, params: dict) -> Optional[dict]:
        try:
            async with self._client() as client:
                resp = await client.get(url, params={"access_token": self.token, **params})
                if resp.status_code >= 400:
                    logger.warning(f"⚠️ Mapbox error {resp.status_code}: {resp.text[:200]}")
                    return None
                return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Mapbox request failed: {e}")
            return None

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[str]:
        """Place name for a point, or None"""
        if not self.token:
            return None

        cache_key = build_reverse_geocode_key(lat, lng, self.language)
        cached = cache.get(cache_key)
        if cached:
            return cached

        data = await self._get_json(
            f"{self.base_url}/geocoding/v5/mapbox.places/{lng},{lat}.json",
            {"language": self.language, "limit": "1"},
        )
        if not data:
            return None

        features = data.get("features") or []
        name = features[0].get("place_name") if features else None
        if name:
            cache.set(cache_key, name, ttl=config.REVERSE_GEOCODE_CACHE_SECONDS)
        return name

    async def get_driving_directions(self, start: dict, end: dict) -> Optional[dict]:
        """
        Driving route between two {lat, lng} points.

        Returns:
            {"coordinates": [{"lat", "lng"}, ...], "durationMinutes": int} or None
        """
        if not self.token:
            return None

        data = await self._get_json(
            f"{self.base_url}/directions/v5/mapbox/driving/"
            f"{start['lng']},{start['lat']};{end['lng']},{end['lat']}",
            {"geometries": "geojson", "overview": "full"},
        )
        routes = (data or {}).get("routes") or []
        if not routes:
            return None

        route = routes[0]
        positions = (route.get("geometry") or {}).get("coordinates") or []
        return {
            "coordinates": [{"lat": p[1], "lng": p[0]} for p in positions],
            "durationMinutes": round((route.get("duration") or 0) / 60),
        }


def get_mapbox_client() -> MapboxClient:
    return MapboxClient(
        token=config.MAPBOX_TOKEN,
        base_url=config.MAPBOX_BASE_URL,
        language=config.MAPBOX_LANGUAGE,
    )

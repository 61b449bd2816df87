"""Map proxy endpoints.

The browser never sees the Mapbox token; lookups go through the backend so
they can be rate limited and cached.
"""

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..rate_limiter import create_rate_limiter
from ..services.mapbox import MapboxClient, get_mapbox_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maps", tags=["Maps"])

rate_limit_maps = create_rate_limiter(
    limit=int(os.getenv("MAPS_RPM", "60")),
    window_seconds=60,
    key_prefix="maps",
    use_ip=True,
)


class ReverseGeocodeResponse(BaseModel):
    placeName: Optional[str] = None


class RoutePoint(BaseModel):
    lat: float
    lng: float


class DirectionsResponse(BaseModel):
    coordinates: list[RoutePoint]
    durationMinutes: int


@router.get("/reverse-geocode", response_model=ReverseGeocodeResponse)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    client: MapboxClient = Depends(get_mapbox_client),
    _: None = Depends(rate_limit_maps),
):
    return ReverseGeocodeResponse(placeName=await client.reverse_geocode(lat, lng))


@router.get("/directions", response_model=Optional[DirectionsResponse])
async def directions(
    start_lat: float = Query(..., alias="startLat", ge=-90, le=90),
    start_lng: float = Query(..., alias="startLng", ge=-180, le=180),
    end_lat: float = Query(..., alias="endLat", ge=-90, le=90),
    end_lng: float = Query(..., alias="endLng", ge=-180, le=180),
    client: MapboxClient = Depends(get_mapbox_client),
    _: None = Depends(rate_limit_maps),
):
    """Driving route, or null when no route is available"""
    return await client.get_driving_directions(
        {"lat": start_lat, "lng": start_lng}, {"lat": end_lat, "lng": end_lng}
    )

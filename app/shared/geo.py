"""Geographic helpers: distances, ETAs and GeoJSON polygon containment"""

import math
from typing import Any, Optional

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two WGS84 points in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def estimate_eta_minutes(distance_km: float, average_speed_kmh: float) -> int:
    """Driving ETA at a constant average speed, never below one minute."""
    if average_speed_kmh <= 0:
        raise ValueError("average_speed_kmh must be positive")
    return max(1, round(distance_km / average_speed_kmh * 60))


def _point_in_ring(lng: float, lat: float, ring: list) -> bool:
    # Ray casting; positions are [lng, lat]
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lng < x_cross:
                inside = not inside
        j = i
    return inside


def point_in_polygon(lat: float, lng: float, polygon: dict[str, Any]) -> bool:
    """
    Check whether a point lies inside a GeoJSON Polygon.

    The first ring is the outer boundary; any further rings are holes.
    """
    rings = polygon.get("coordinates") or []
    if not rings:
        return False
    if not _point_in_ring(lng, lat, rings[0]):
        return False
    for hole in rings[1:]:
        if _point_in_ring(lng, lat, hole):
            return False
    return True


def validate_polygon(polygon: dict[str, Any]) -> Optional[str]:
    """
    Validate a GeoJSON Polygon geometry.

    Returns:
        None when valid, otherwise a human readable error message
    """
    if not isinstance(polygon, dict) or polygon.get("type") != "Polygon":
        return "Geometry must be a GeoJSON Polygon"

    rings = polygon.get("coordinates")
    if not isinstance(rings, list) or not rings:
        return "Polygon must have at least one ring"

    for ring in rings:
        if not isinstance(ring, list) or len(ring) < 4:
            return "Each ring needs at least 4 positions"
        for position in ring:
            if not isinstance(position, (list, tuple)) or len(position) < 2:
                return "Positions must be [lng, lat] pairs"
            lng, lat = position[0], position[1]
            if not isinstance(lng, (int, float)) or not isinstance(lat, (int, float)):
                return "Positions must be numeric"
            if not -180 <= lng <= 180 or not -90 <= lat <= 90:
                return "Position out of range"
        if list(ring[0][:2]) != list(ring[-1][:2]):
            return "Rings must be closed (first and last positions equal)"

    return None

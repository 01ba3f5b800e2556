"""
Route estimation service.

Straight-line (haversine) estimate between the agent's current position
and the delivery address. No road routing is performed; the result is
only rendered by consumers.
"""

import math

from ordertrack.app.core.config import settings
from ordertrack.app.schemas.tracking import RouteResponse

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimate_route(
    origin_lat: float,
    origin_lng: float,
    dest_lat: float,
    dest_lng: float,
    average_speed_kmh: float = None,
) -> RouteResponse:
    """
    Estimate distance and duration for a two-point route.

    Args:
        origin_lat, origin_lng: Agent's current position
        dest_lat, dest_lng: Delivery address
        average_speed_kmh: Overrides the configured average speed

    Returns:
        RouteResponse with a two-point polyline and display texts
    """
    speed = average_speed_kmh or settings.route_average_speed_kmh
    distance_km = haversine_km(origin_lat, origin_lng, dest_lat, dest_lng)
    duration_seconds = int(distance_km / speed * 3600)

    return RouteResponse(
        polyline=[[origin_lat, origin_lng], [dest_lat, dest_lng]],
        distance_meters=int(distance_km * 1000),
        distance_text=f"{distance_km:.1f} km",
        duration_seconds=duration_seconds,
        duration_text=f"{duration_seconds // 60} min",
    )

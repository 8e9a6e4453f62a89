from __future__ import annotations

import math
from collections.abc import Sequence

from trip_costing.services.types import RoutePoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2.0) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def min_distance_to_route(lat: float, lon: float, points: Sequence[RoutePoint]) -> float:
    """Distance in km from a point to the nearest route vertex.

    Route segments are not projected onto, so the result is an upper bound
    whose error shrinks as the route point density grows.
    """
    best = math.inf
    for point in points:
        distance = haversine_km(lat, lon, point.latitude, point.longitude)
        if distance < best:
            best = distance
    return best

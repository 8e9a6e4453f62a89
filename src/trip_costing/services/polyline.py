from __future__ import annotations

from collections.abc import Iterable

import polyline

from trip_costing.services.types import RoutePoint

CHARACTER_OFFSET = 63


def decode_polyline(encoded: str | None, precision: int = 5) -> list[RoutePoint]:
    """Decode an encoded polyline into (longitude, latitude) points.

    Empty and malformed input both decode to an empty list.
    """
    if not encoded or any(ord(char) < CHARACTER_OFFSET for char in encoded):
        return []

    try:
        coordinates = polyline.decode(encoded, precision)
    except (IndexError, TypeError, ValueError):
        return []

    return [RoutePoint(longitude=lon, latitude=lat) for lat, lon in coordinates]


def decode_with_fallback(
    encoded: str | None, precisions: Iterable[int] = (6, 5)
) -> list[RoutePoint]:
    for precision in precisions:
        points = decode_polyline(encoded, precision)
        if points:
            return points
    return []

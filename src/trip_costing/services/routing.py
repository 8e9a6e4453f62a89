from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from trip_costing.exceptions import GeocodeFailedError, ProviderError, RouteUnavailableError
from trip_costing.services.maps import DirectionsResponse, MapsClient, get_maps_client, truncate
from trip_costing.services.polyline import decode_with_fallback
from trip_costing.services.types import Route, RoutePoint

logger = logging.getLogger(__name__)

METERS_PER_KM = 1000.0
SECONDS_PER_HOUR = 3600.0

Endpoint = str | RoutePoint
GeometryStrategy = Callable[[dict[str, Any], Sequence[int]], list[RoutePoint]]


class RouteProvider:
    def __init__(self, client: MapsClient | None = None) -> None:
        self.client = client or get_maps_client()

    def resolve(self, origin: Endpoint, destination: Endpoint) -> Route:
        origin_point = self._to_point(origin)
        destination_point = self._to_point(destination)
        if origin_point is None or destination_point is None:
            raise GeocodeFailedError("geocode_failed_for_start_or_destination")

        response = self.client.directions(origin_point, destination_point)
        if not response.ok:
            response = self._retry_unroutable(response, origin_point, destination_point)

        route = parse_directions(response, self.client.polyline_precisions)
        if not route.points:
            logger.warning("Parsed route had no points. rawResponse=%s", truncate(response.text))
            raise RouteUnavailableError("Route returned no points", reason="route_has_no_points")
        return route

    def _to_point(self, endpoint: Endpoint) -> RoutePoint | None:
        if isinstance(endpoint, RoutePoint):
            return endpoint
        return self.client.geocode(endpoint)

    def _retry_unroutable(
        self, response: DirectionsResponse, origin: RoutePoint, destination: RoutePoint
    ) -> DirectionsResponse:
        if not self.client.is_unroutable(response):
            raise ProviderError(
                "Directions request failed",
                status_code=response.status_code,
                reason=f"directions_http_{response.status_code}",
            )

        snapped = self._snap_endpoints(origin, destination)
        if snapped is None:
            raise RouteUnavailableError("Could not snap points to road", reason="could_not_snap_points")

        snapped_origin, snapped_destination = snapped
        logger.info("Retrying directions with snapped start=%s dest=%s", snapped_origin, snapped_destination)
        retry = self.client.directions(snapped_origin, snapped_destination)
        if not retry.ok:
            raise RouteUnavailableError(
                "Directions retry after snapping failed",
                reason=f"directions_http_{retry.status_code}",
            )
        return retry

    def _snap_endpoints(
        self, origin: RoutePoint, destination: RoutePoint
    ) -> tuple[RoutePoint, RoutePoint] | None:
        snapped = self.client.snap_to_road(origin, destination)
        if len(snapped) >= 2:
            return snapped[0], snapped[-1]

        snapped_origin = self.client.reverse_geocode(origin)
        snapped_destination = self.client.reverse_geocode(destination)
        if snapped_origin is None or snapped_destination is None:
            return None
        return snapped_origin, snapped_destination


def parse_directions(response: DirectionsResponse, precisions: Sequence[int] = (6, 5)) -> Route:
    try:
        payload = response.json()
    except ValueError as exc:
        raise RouteUnavailableError(
            "Directions response is not valid JSON", reason="directions_parse_error"
        ) from exc
    if not isinstance(payload, dict):
        raise RouteUnavailableError(
            "Directions response is not a JSON object", reason="directions_parse_error"
        )
    return parse_route_payload(payload, precisions)


def parse_route_payload(payload: dict[str, Any], precisions: Sequence[int] = (6, 5)) -> Route:
    routes = payload.get("routes") or []
    if not routes or not isinstance(routes[0], dict):
        return Route(distance_km=0.0, duration_hours=0.0, points=())

    route = routes[0]
    distance_meters, duration_seconds = _route_totals(route)

    points: list[RoutePoint] = []
    for strategy in GEOMETRY_STRATEGIES:
        points = strategy(route, precisions)
        if points:
            break

    return Route(
        distance_km=distance_meters / METERS_PER_KM,
        duration_hours=duration_seconds / SECONDS_PER_HOUR,
        points=tuple(points),
    )


def _route_totals(route: dict[str, Any]) -> tuple[float, float]:
    summary = route.get("summary")
    if isinstance(summary, dict):
        return _as_float(summary.get("distance")), _as_float(summary.get("duration"))

    distance = 0.0
    duration = 0.0
    for leg in _legs(route):
        distance += _as_float(leg.get("distance"))
        duration += _as_float(leg.get("duration"))
    return distance, duration


def _encoded_geometry(route: dict[str, Any], precisions: Sequence[int]) -> list[RoutePoint]:
    geometry = route.get("geometry")
    if not isinstance(geometry, str):
        return []
    return decode_with_fallback(geometry.strip(), precisions)


def _coordinate_geometry(route: dict[str, Any], precisions: Sequence[int]) -> list[RoutePoint]:
    geometry = route.get("geometry")
    if isinstance(geometry, dict):
        geometry = geometry.get("coordinates")
    if not isinstance(geometry, list):
        return []

    points: list[RoutePoint] = []
    for pair in geometry:
        try:
            points.append(RoutePoint(longitude=float(pair[0]), latitude=float(pair[1])))
        except (IndexError, TypeError, ValueError):
            return []
    return points


def _overview_polyline(route: dict[str, Any], precisions: Sequence[int]) -> list[RoutePoint]:
    return decode_with_fallback(_encoded_text(route.get("overview_polyline")), precisions)


def _leg_geometry(route: dict[str, Any], precisions: Sequence[int]) -> list[RoutePoint]:
    points: list[RoutePoint] = []
    for leg in _legs(route):
        points.extend(decode_with_fallback(_encoded_text(leg.get("polyline")), precisions))

        steps = leg.get("steps")
        anchors = steps if isinstance(steps, list) and steps else [leg]
        for anchor in anchors:
            if not isinstance(anchor, dict):
                continue
            for key in ("start_location", "end_location"):
                point = _location_point(anchor.get(key))
                if point is not None:
                    points.append(point)

    return dedupe_sequential(points)


GEOMETRY_STRATEGIES: tuple[GeometryStrategy, ...] = (
    _encoded_geometry,
    _coordinate_geometry,
    _overview_polyline,
    _leg_geometry,
)


def dedupe_sequential(points: Iterable[RoutePoint]) -> list[RoutePoint]:
    deduped: list[RoutePoint] = []
    for point in points:
        if deduped and deduped[-1].is_near(point):
            continue
        deduped.append(point)
    return deduped


def _legs(route: dict[str, Any]) -> list[dict[str, Any]]:
    legs = route.get("legs")
    if not isinstance(legs, list):
        return []
    return [leg for leg in legs if isinstance(leg, dict)]


def _encoded_text(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("points")
    return value.strip() if isinstance(value, str) else ""


def _location_point(value: Any) -> RoutePoint | None:
    if not isinstance(value, dict):
        return None
    try:
        return RoutePoint(longitude=float(value["lng"]), latitude=float(value["lat"]))
    except (KeyError, TypeError, ValueError):
        return None


def _as_float(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0

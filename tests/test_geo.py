from __future__ import annotations

import math

import pytest

from trip_costing.services.geo import EARTH_RADIUS_KM, haversine_km, min_distance_to_route
from trip_costing.services.types import RoutePoint


def test_haversine_zero_for_same_point() -> None:
    assert haversine_km(28.6139, 77.209, 28.6139, 77.209) == 0.0


def test_haversine_is_symmetric() -> None:
    forward = haversine_km(28.6139, 77.209, 19.076, 72.8777)
    backward = haversine_km(19.076, 72.8777, 28.6139, 77.209)

    assert forward == pytest.approx(backward)
    assert forward == pytest.approx(1148, rel=0.01)


def test_haversine_one_degree_of_latitude() -> None:
    assert haversine_km(10.0, 20.0, 11.0, 20.0) == pytest.approx(EARTH_RADIUS_KM * math.pi / 180)


def test_min_distance_is_zero_for_route_vertex() -> None:
    points = [RoutePoint(77.0, 28.0), RoutePoint(77.1, 28.1), RoutePoint(77.2, 28.2)]

    assert min_distance_to_route(28.1, 77.1, points) == 0.0


def test_min_distance_uses_nearest_vertex_only() -> None:
    points = [RoutePoint(77.0, 28.0), RoutePoint(77.0, 29.0)]

    # midpoint of the segment is half a degree from both vertices
    distance = min_distance_to_route(28.5, 77.0, points)

    assert distance == pytest.approx(EARTH_RADIUS_KM * math.pi / 360)


def test_min_distance_of_empty_route_is_infinite() -> None:
    assert min_distance_to_route(28.0, 77.0, []) == math.inf

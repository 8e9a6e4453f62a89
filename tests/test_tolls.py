from __future__ import annotations

import math

import pytest

from trip_costing.services.geo import EARTH_RADIUS_KM
from trip_costing.services.tolls import TollMatcher, extract_fee, normalize_vehicle_class
from trip_costing.services.types import Route, RoutePoint, TollPlaza

ROUTE = Route(
    distance_km=30.0,
    duration_hours=0.5,
    points=(RoutePoint(77.0, 28.0), RoutePoint(77.1, 28.1), RoutePoint(77.2, 28.2)),
)
KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180


def _plaza(
    name: str,
    km_north: float = 0.0,
    fees: dict | None = None,
    plaza_id: object = None,
    record: dict | None = None,
) -> TollPlaza:
    return TollPlaza(
        plaza_id=plaza_id,
        name=name,
        location=RoutePoint(longitude=77.1, latitude=28.1 + km_north / KM_PER_DEGREE),
        fees={"car": {"single": 100}} if fees is None else fees,
        record=record or {},
    )


@pytest.mark.parametrize(
    ("vehicle_type", "expected"),
    [
        ("Car", "car"),
        ("van", "car"),
        ("JEEP", "car"),
        ("lcv", "lcv"),
        ("bus", "bus"),
        ("Truck", "bus"),
        ("multi axle", "multi_axle"),
        ("multi_axle", "multi_axle"),
        ("4 to 6 axle", "4to6_axle"),
        ("7 or more axle", "7_or_more_axle"),
        ("HCM EME", "hcm_eme"),
        ("tractor", "car"),
        ("", "car"),
        (None, "car"),
    ],
)
def test_normalize_vehicle_class(vehicle_type: str | None, expected: str) -> None:
    assert normalize_vehicle_class(vehicle_type) == expected


@pytest.mark.parametrize(
    ("fees", "record", "expected"),
    [
        ({"car": {"single": 80, "fare": 60}}, {}, 80.0),
        ({"car": {"single": "85.5"}}, {}, 85.5),
        ({"car": {"single": "n/a", "singleFare": "90"}}, {}, 90.0),
        ({"car": {"fare": 70, "amount": 65}}, {}, 70.0),
        ({"car": {"amount": 65}}, {}, 65.0),
        ({"car": 110}, {}, 110.0),
        ({"car": "120"}, {}, 120.0),
        ({}, {"car": 130}, 130.0),
        ({"bus": 300}, {}, 0.0),
        ({"car": {"single": None}}, {"car": "free"}, 0.0),
        ({"car": {"single": "NaN"}}, {}, 0.0),
        ({"car": {"single": "inf", "fare": 75}}, {}, 75.0),
        ({"car": float("nan")}, {"car": 40}, 40.0),
    ],
)
def test_extract_fee_strategy_order(fees: dict, record: dict, expected: float) -> None:
    plaza = TollPlaza(name="P", location=None, fees=fees, record=record)

    assert extract_fee(plaza, "car") == expected


def test_plaza_within_threshold_is_included_and_beyond_is_excluded() -> None:
    near = _plaza("Near", km_north=1.5)
    far = _plaza("Far", km_north=2.5)

    result = TollMatcher(threshold_km=2.0).match(ROUTE, [near, far], "car")

    assert [match.name for match in result.matches] == ["Near"]
    assert result.matches[0].distance_from_route_km == pytest.approx(1.5)
    assert result.total_fee == 100.0


def test_same_id_is_never_charged_twice() -> None:
    first = _plaza("Kherki Daula", plaza_id="KD-1")
    duplicate = _plaza("Kherki Daula (return lane)", km_north=0.2, plaza_id="KD-1")

    result = TollMatcher(threshold_km=2.0).match(ROUTE, [first, duplicate], "car")

    assert len(result.matches) == 1
    assert result.total_fee == 100.0


def test_plazas_without_id_are_deduplicated_by_name() -> None:
    result = TollMatcher(threshold_km=2.0).match(
        ROUTE, [_plaza("Murthal"), _plaza("Murthal", km_north=0.5)], "car"
    )

    assert result.total_fee == 100.0


def test_zero_or_missing_fees_are_not_reported() -> None:
    result = TollMatcher(threshold_km=2.0).match(
        ROUTE,
        [
            _plaza("Free", fees={"car": {"single": 0}}),
            _plaza("Trucks only", fees={"bus": 300}),
            _plaza("Paid", fees={"car": 55}),
        ],
        "car",
    )

    assert [match.name for match in result.matches] == ["Paid"]
    assert result.total_fee == 55.0


def test_plazas_without_location_are_skipped() -> None:
    plaza = TollPlaza(name="Unknown", location=None, fees={"car": 100})

    assert TollMatcher(threshold_km=2.0).match(ROUTE, [plaza], "car").matches == []


def test_malformed_plaza_does_not_stop_matching() -> None:
    broken = _plaza("Broken", plaza_id=["unhashable"])
    good = _plaza("Good", km_north=0.1, plaza_id="G-1")

    result = TollMatcher(threshold_km=2.0).match(ROUTE, [broken, good], "car")

    assert [match.name for match in result.matches] == ["Good"]


def test_threshold_defaults_to_settings(settings) -> None:
    settings.TOLL_MATCH_THRESHOLD_KM = 3.0

    result = TollMatcher().match(ROUTE, [_plaza("Wide", km_north=2.5)], "car")

    assert result.total_fee == 100.0


def test_non_finite_fees_are_left_out_of_the_total() -> None:
    result = TollMatcher(threshold_km=2.0).match(
        ROUTE,
        [
            _plaza("Garbled", fees={"car": {"single": "NaN"}}),
            _plaza("Paid", km_north=0.3, fees={"car": 55}),
        ],
        "car",
    )

    assert [match.name for match in result.matches] == ["Paid"]
    assert result.total_fee == 55.0

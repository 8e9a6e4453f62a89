from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from django.conf import settings

from trip_costing.services.geo import min_distance_to_route
from trip_costing.services.types import Route, TollMatch, TollMatchResult, TollPlaza

logger = logging.getLogger(__name__)

DEFAULT_VEHICLE_CLASS = "car"

VEHICLE_CLASSES = {
    "car": "car",
    "van": "car",
    "jeep": "car",
    "lcv": "lcv",
    "bus": "bus",
    "truck": "bus",
    "multi axle": "multi_axle",
    "multi_axle": "multi_axle",
    "4 to 6 axle": "4to6_axle",
    "4to6_axle": "4to6_axle",
    "7 or more axle": "7_or_more_axle",
    "7_or_more_axle": "7_or_more_axle",
    "hcm eme": "hcm_eme",
    "hcm_eme": "hcm_eme",
}

FARE_VARIANT_KEYS = ("singleFare", "fare", "amount")

FeeStrategy = Callable[[TollPlaza, str], Any]


def normalize_vehicle_class(vehicle_type: str | None) -> str:
    if not vehicle_type:
        return DEFAULT_VEHICLE_CLASS
    return VEHICLE_CLASSES.get(vehicle_type.strip().lower(), DEFAULT_VEHICLE_CLASS)


def _nested_single_fare(plaza: TollPlaza, vehicle_class: str) -> Any:
    fares = plaza.fees.get(vehicle_class)
    return fares.get("single") if isinstance(fares, Mapping) else None


def _nested_fare_variant(plaza: TollPlaza, vehicle_class: str) -> Any:
    fares = plaza.fees.get(vehicle_class)
    if not isinstance(fares, Mapping):
        return None
    for key in FARE_VARIANT_KEYS:
        if _parse_fee(fares.get(key)) is not None:
            return fares[key]
    return None


def _direct_fee(plaza: TollPlaza, vehicle_class: str) -> Any:
    return plaza.fees.get(vehicle_class)


def _top_level_fee(plaza: TollPlaza, vehicle_class: str) -> Any:
    return plaza.record.get(vehicle_class)


FEE_STRATEGIES: tuple[FeeStrategy, ...] = (
    _nested_single_fare,
    _nested_fare_variant,
    _direct_fee,
    _top_level_fee,
)


def extract_fee(plaza: TollPlaza, vehicle_class: str) -> float:
    for strategy in FEE_STRATEGIES:
        fee = _parse_fee(strategy(plaza, vehicle_class))
        if fee is not None:
            return fee
    return 0.0


def _parse_fee(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        fee = float(value)
    elif isinstance(value, str):
        try:
            fee = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return fee if math.isfinite(fee) else None


class TollMatcher:
    def __init__(self, threshold_km: float | None = None) -> None:
        self.threshold_km = (
            threshold_km if threshold_km is not None else settings.TOLL_MATCH_THRESHOLD_KM
        )

    def match(
        self, route: Route, plazas: Iterable[TollPlaza], vehicle_class: str
    ) -> TollMatchResult:
        seen: set[Any] = set()
        matches: list[TollMatch] = []
        total_fee = 0.0

        for plaza in plazas:
            try:
                match = self._match_plaza(route, plaza, vehicle_class, seen)
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed toll plaza %r: %s", plaza.name, exc)
                continue
            if match is not None:
                matches.append(match)
                total_fee += match.fee

        logger.info(
            "Matched %d toll plazas for vehicle class %s (total %.2f)",
            len(matches),
            vehicle_class,
            total_fee,
        )
        return TollMatchResult(total_fee=total_fee, matches=matches)

    def _match_plaza(
        self, route: Route, plaza: TollPlaza, vehicle_class: str, seen: set[Any]
    ) -> TollMatch | None:
        if plaza.location is None:
            return None

        distance = min_distance_to_route(
            plaza.location.latitude, plaza.location.longitude, route.points
        )
        if distance > self.threshold_km:
            return None

        key = plaza.dedup_key
        if key in seen:
            return None
        seen.add(key)

        fee = extract_fee(plaza, vehicle_class)
        if fee <= 0.0:
            return None
        return TollMatch(
            name=plaza.name,
            location=plaza.location,
            fee=fee,
            distance_from_route_km=distance,
        )

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

DUPLICATE_POINT_TOLERANCE = 1e-9


@dataclass(slots=True, frozen=True)
class RoutePoint:
    longitude: float
    latitude: float

    def is_near(self, other: RoutePoint, tolerance: float = DUPLICATE_POINT_TOLERANCE) -> bool:
        return (
            abs(self.longitude - other.longitude) <= tolerance
            and abs(self.latitude - other.latitude) <= tolerance
        )


@dataclass(slots=True, frozen=True)
class Route:
    distance_km: float
    duration_hours: float
    points: tuple[RoutePoint, ...]


@dataclass(slots=True, frozen=True)
class TollPlaza:
    name: str
    location: RoutePoint | None
    fees: Mapping[str, Any]
    record: Mapping[str, Any] = field(default_factory=dict)
    plaza_id: Any = None

    @property
    def dedup_key(self) -> Any:
        return self.plaza_id if self.plaza_id is not None else self.name


@dataclass(slots=True, frozen=True)
class FuelPriceEntry:
    state: str
    city: str
    price: float
    location: RoutePoint | None = None


@dataclass(slots=True, frozen=True)
class TollMatch:
    name: str
    location: RoutePoint
    fee: float
    distance_from_route_km: float


@dataclass(slots=True, frozen=True)
class TollMatchResult:
    total_fee: float
    matches: list[TollMatch]


@dataclass(slots=True, frozen=True)
class FuelEstimate:
    litres_needed: float
    price_per_litre: float
    total_cost: float
    source: str


@dataclass(slots=True, frozen=True)
class TripExtras:
    border_expense: float = 0.0
    loading_unloading: float = 0.0
    tyre: float = 0.0
    incentive: float = 0.0
    additional_cost: float = 0.0


@dataclass(slots=True, frozen=True)
class ExpenseBreakdown:
    toll_total: float
    fuel_total: float
    extras: TripExtras
    journey_days: int
    da_total: float
    extras_total: float
    grand_total: float

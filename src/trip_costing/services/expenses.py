from __future__ import annotations

import math

from trip_costing.exceptions import InvalidInputError
from trip_costing.services.types import ExpenseBreakdown, TripExtras


def journey_days(distance_km: float, km_per_day: float) -> int:
    if km_per_day is None or km_per_day <= 0:
        raise InvalidInputError(
            "Missing or invalid required field: kilometers_per_day (must be > 0)"
        )
    return max(1, math.ceil(distance_km / km_per_day))


def aggregate(
    toll_total: float,
    fuel_total: float,
    extras: TripExtras,
    distance_km: float,
    km_per_day: float,
    da_per_day: float = 0.0,
) -> ExpenseBreakdown:
    days = journey_days(distance_km, km_per_day)
    da_total = (da_per_day or 0.0) * days
    extras_total = (
        extras.border_expense
        + extras.loading_unloading
        + extras.tyre
        + extras.incentive
        + da_total
        + extras.additional_cost
    )
    return ExpenseBreakdown(
        toll_total=toll_total,
        fuel_total=fuel_total,
        extras=extras,
        journey_days=days,
        da_total=da_total,
        extras_total=extras_total,
        grand_total=toll_total + fuel_total + extras_total,
    )

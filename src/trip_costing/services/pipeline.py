from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from trip_costing.exceptions import (
    InvalidInputError,
    InvalidMileageError,
    TripCostError,
    TripCostInternalError,
)
from trip_costing.schemas import (
    ExtrasResponse,
    FinalCostResponse,
    FuelResponse,
    RefuelResponse,
    TollDetailResponse,
    TollsResponse,
    TripCostRequest,
    TripCostResponse,
    TripSummaryResponse,
)
from trip_costing.services.datasets import load_toll_plazas
from trip_costing.services.expenses import aggregate
from trip_costing.services.fuel import FuelCostEstimator
from trip_costing.services.routing import RouteProvider
from trip_costing.services.tolls import TollMatcher, normalize_vehicle_class
from trip_costing.services.types import TollPlaza, TripExtras

logger = logging.getLogger(__name__)


class TripCostPipeline:
    def __init__(
        self,
        route_provider: RouteProvider | None = None,
        toll_matcher: TollMatcher | None = None,
        fuel_estimator: FuelCostEstimator | None = None,
        toll_plazas: Callable[[], Sequence[TollPlaza]] | None = None,
    ) -> None:
        self.route_provider = route_provider or RouteProvider()
        self.toll_matcher = toll_matcher or TollMatcher()
        self.fuel_estimator = fuel_estimator or FuelCostEstimator()
        self.toll_plazas = toll_plazas or load_toll_plazas

    def estimate(self, request: TripCostRequest) -> TripCostResponse:
        try:
            return self._estimate(request)
        except TripCostError:
            raise
        except Exception as exc:
            logger.exception("Unexpected error while estimating trip cost")
            raise TripCostInternalError("Internal error while estimating trip cost") from exc

    def _estimate(self, request: TripCostRequest) -> TripCostResponse:
        _check_trip_parameters(request)

        if request.uses_coordinates:
            origin = request.start_coord.to_point()
            destination = request.dest_coord.to_point()
            origin_label = request.start_coord.label()
            destination_label = request.dest_coord.label()
        else:
            origin = origin_label = request.start
            destination = destination_label = request.destination

        route = self.route_provider.resolve(origin, destination)

        vehicle_class = normalize_vehicle_class(request.vehicle_type)
        tolls = self.toll_matcher.match(route, self.toll_plazas(), vehicle_class)

        fuel = self.fuel_estimator.estimate(
            distance_km=route.distance_km,
            mileage=request.mileage,
            fuel_type=request.fuel_type,
            user_total_cost=request.fuel_cost,
            user_per_litre_price=request.per_litre_price,
        )

        extras = TripExtras(
            border_expense=request.border_expense,
            loading_unloading=request.loading_unloading,
            tyre=request.tyre,
            incentive=request.incentive,
            additional_cost=request.additional_cost,
        )
        breakdown = aggregate(
            toll_total=tolls.total_fee,
            fuel_total=fuel.total_cost,
            extras=extras,
            distance_km=route.distance_km,
            km_per_day=request.kilometers_per_day,
            da_per_day=request.da_amount_per_day,
        )

        return TripCostResponse(
            trip_summary=TripSummaryResponse(
                origin=origin_label,
                destination=destination_label,
                vehicle_type=request.vehicle_type,
                distance_km=round(route.distance_km, 2),
                duration_hours=round(route.duration_hours, 2),
                mileage=request.mileage,
                journey_time_days=breakdown.journey_days,
                fuel_tank_capacity=request.fuel_tank_capacity,
            ),
            tolls=TollsResponse(
                total_toll_cost=round(breakdown.toll_total, 2),
                toll_details=[
                    TollDetailResponse(
                        name=match.name,
                        lat=match.location.latitude,
                        lon=match.location.longitude,
                        fee=round(match.fee, 2),
                        distance_from_route_km=round(match.distance_from_route_km, 2),
                    )
                    for match in tolls.matches
                ],
            ),
            fuel=FuelResponse(
                total_fuel_needed=round(fuel.litres_needed, 2),
                total_fuel_cost=round(fuel.total_cost, 2),
                refuels=[
                    RefuelResponse(
                        price_per_litre=round(fuel.price_per_litre, 2),
                        cost=round(fuel.total_cost, 2),
                        litres_needed=round(fuel.litres_needed, 2),
                        source=fuel.source,
                    )
                ],
            ),
            extras=ExtrasResponse(
                border_expense=round(extras.border_expense, 2),
                loading_unloading=round(extras.loading_unloading, 2),
                tyre=round(extras.tyre, 2),
                incentive=round(extras.incentive, 2),
                da_trip_amount=round(breakdown.da_total, 2),
                additional_cost=round(extras.additional_cost, 2),
                total_extras=round(breakdown.extras_total, 2),
            ),
            final_cost=FinalCostResponse(
                toll=round(breakdown.toll_total, 2),
                fuel=round(breakdown.fuel_total, 2),
                extras=round(breakdown.extras_total, 2),
                total_trip_cost=round(breakdown.grand_total, 2),
            ),
        )


def _check_trip_parameters(request: TripCostRequest) -> None:
    if request.mileage <= 0:
        raise InvalidMileageError("mileage must be greater than 0")
    if request.kilometers_per_day <= 0:
        raise InvalidInputError(
            "Missing or invalid required field: kilometers_per_day (must be > 0)"
        )

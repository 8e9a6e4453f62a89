from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from django.conf import settings

from trip_costing.exceptions import InvalidMileageError
from trip_costing.services.datasets import load_fuel_prices
from trip_costing.services.types import FuelEstimate, FuelPriceEntry

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PricingContext:
    litres_needed: float
    prices: Sequence[FuelPriceEntry]
    user_total_cost: float | None
    user_per_litre_price: float | None


PricingStrategy = Callable[[PricingContext], FuelEstimate | None]


class FuelCostEstimator:
    """Fuel cost for a trip from the first applicable pricing source.

    Sources, in priority order: an explicit total spend, an explicit
    per-litre rate, the dataset entry for the default region, the first
    dataset entry, and finally a fixed fallback price.
    """

    def __init__(
        self, default_region: str | None = None, fallback_price: float | None = None
    ) -> None:
        self.default_region = default_region or settings.DEFAULT_FUEL_REGION
        self.fallback_price = (
            fallback_price if fallback_price is not None else settings.FALLBACK_FUEL_PRICE
        )
        self.strategies: tuple[PricingStrategy, ...] = (
            self._from_user_total_cost,
            self._from_user_per_litre_price,
            self._from_default_region,
            self._from_first_entry,
        )

    def estimate(
        self,
        distance_km: float,
        mileage: float,
        fuel_type: str = "petrol",
        user_total_cost: float | None = None,
        user_per_litre_price: float | None = None,
        prices: Sequence[FuelPriceEntry] | None = None,
    ) -> FuelEstimate:
        if mileage is None or mileage <= 0:
            raise InvalidMileageError("mileage must be greater than 0")

        user_priced = (user_total_cost or 0) > 0 or (user_per_litre_price or 0) > 0
        if prices is None and not user_priced:
            prices = load_fuel_prices(fuel_type)

        context = PricingContext(
            litres_needed=distance_km / mileage,
            prices=prices or (),
            user_total_cost=user_total_cost,
            user_per_litre_price=user_per_litre_price,
        )
        for strategy in self.strategies:
            estimate = strategy(context)
            if estimate is not None:
                break
        else:
            estimate = self._from_fallback_price(context)

        logger.info(
            "Fuel priced from %s: %.2f per litre, %.2f litres",
            estimate.source,
            estimate.price_per_litre,
            estimate.litres_needed,
        )
        return estimate

    @staticmethod
    def _from_user_total_cost(context: PricingContext) -> FuelEstimate | None:
        total = context.user_total_cost
        if total is None or total <= 0:
            return None
        litres = context.litres_needed
        return FuelEstimate(
            litres_needed=litres,
            price_per_litre=total / litres if litres > 0 else 0.0,
            total_cost=total,
            source="user_total_cost",
        )

    @staticmethod
    def _from_user_per_litre_price(context: PricingContext) -> FuelEstimate | None:
        price = context.user_per_litre_price
        if price is None or price <= 0:
            return None
        return _priced(context, price, "user_per_litre_price")

    def _from_default_region(self, context: PricingContext) -> FuelEstimate | None:
        region = self.default_region.lower()
        entry = next((item for item in context.prices if item.state.lower() == region), None)
        if entry is None:
            return None
        return _priced(context, entry.price, _dataset_source(entry))

    @staticmethod
    def _from_first_entry(context: PricingContext) -> FuelEstimate | None:
        if not context.prices:
            return None
        entry = context.prices[0]
        return _priced(context, entry.price, _dataset_source(entry))

    def _from_fallback_price(self, context: PricingContext) -> FuelEstimate:
        logger.warning("No fuel price data available, using fallback price %.2f", self.fallback_price)
        return _priced(context, self.fallback_price, "fallback")


def _priced(context: PricingContext, price: float, source: str) -> FuelEstimate:
    return FuelEstimate(
        litres_needed=context.litres_needed,
        price_per_litre=price,
        total_cost=context.litres_needed * price,
        source=source,
    )


def _dataset_source(entry: FuelPriceEntry) -> str:
    return f"dataset:{entry.state}/{entry.city}"

"""Static toll-plaza and fuel-price reference data.

Both datasets ship with the deployment, are parsed once per process and are
returned as tuples so concurrent requests can share them without locking.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from django.conf import settings

from trip_costing.services.types import FuelPriceEntry, RoutePoint, TollPlaza

logger = logging.getLogger(__name__)

MAX_ABS_LATITUDE = 90.0
MAX_ABS_LONGITUDE = 180.0


def load_toll_plazas(path: Path | str | None = None) -> tuple[TollPlaza, ...]:
    return _load_toll_plazas(str(path or settings.TOLL_DATA_PATH))


def load_fuel_prices(fuel_type: str, path: Path | str | None = None) -> tuple[FuelPriceEntry, ...]:
    return _load_fuel_prices(str(path or settings.FUEL_PRICES_PATH), fuel_type.strip().lower())


def clear_dataset_cache() -> None:
    _read_json.cache_clear()
    _load_toll_plazas.cache_clear()
    _load_fuel_prices.cache_clear()


@lru_cache(maxsize=8)
def _read_json(path: str) -> Any:
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=8)
def _load_toll_plazas(path: str) -> tuple[TollPlaza, ...]:
    try:
        payload = _read_json(path)
    except (OSError, ValueError) as exc:
        logger.warning("Toll dataset %s could not be loaded: %s", path, exc)
        return ()

    if isinstance(payload, dict):
        records = payload.get("toll_plazas", payload.get("plazas", []))
    else:
        records = payload
    if not isinstance(records, list):
        logger.warning("Toll dataset %s has no plaza list", path)
        return ()

    plazas = tuple(
        toll_plaza_from_record(record) for record in records if isinstance(record, dict)
    )
    logger.info("Loaded %d toll plazas from %s", len(plazas), path)
    return plazas


@lru_cache(maxsize=32)
def _load_fuel_prices(path: str, fuel_type: str) -> tuple[FuelPriceEntry, ...]:
    try:
        payload = _read_json(path)
    except (OSError, ValueError) as exc:
        logger.warning("Fuel price dataset %s could not be loaded: %s", path, exc)
        return ()
    if not isinstance(payload, dict):
        logger.warning("Fuel price dataset %s is not keyed by state", path)
        return ()

    entries: list[FuelPriceEntry] = []
    for state, cities in payload.items():
        if not isinstance(cities, dict):
            continue
        for city, values in cities.items():
            if not isinstance(values, dict) or values.get(fuel_type) is None:
                continue
            try:
                price = float(values[fuel_type])
            except (TypeError, ValueError):
                continue
            entries.append(
                FuelPriceEntry(
                    state=state,
                    city=city,
                    price=price,
                    location=_mapping_point(values.get("location")),
                )
            )
    return tuple(entries)


def toll_plaza_from_record(record: Mapping[str, Any]) -> TollPlaza:
    fees = record.get("fees")
    return TollPlaza(
        plaza_id=record.get("id"),
        name=str(record.get("name") or "<unknown>"),
        location=plaza_location(record),
        fees=fees if isinstance(fees, dict) else {},
        record=record,
    )


def plaza_location(record: Mapping[str, Any]) -> RoutePoint | None:
    location = record.get("location")
    if isinstance(location, dict):
        point = _mapping_point(location)
    elif isinstance(location, list | tuple):
        point = pair_point(location)
    else:
        point = _mapping_point(record)

    if point is None or (point.latitude == 0.0 and point.longitude == 0.0):
        return None
    return point


def pair_point(values: Any) -> RoutePoint | None:
    """Read a two-value coordinate whose axis order is not declared.

    ``[lat, lon]`` is assumed when both values fit their ranges, otherwise the
    pair is taken as ``[lon, lat]``.
    """
    if len(values) < 2:
        return None
    try:
        first = float(values[0])
        second = float(values[1])
    except (TypeError, ValueError):
        return None

    if abs(first) <= MAX_ABS_LATITUDE and abs(second) <= MAX_ABS_LONGITUDE:
        return RoutePoint(longitude=second, latitude=first)
    return RoutePoint(longitude=first, latitude=second)


def _mapping_point(values: Any) -> RoutePoint | None:
    if not isinstance(values, Mapping):
        return None
    latitude = _first_present(values, ("lat", "latitude"))
    longitude = _first_present(values, ("lon", "longitude", "lng"))
    if latitude is None or longitude is None:
        return None
    try:
        return RoutePoint(longitude=float(longitude), latitude=float(latitude))
    except (TypeError, ValueError):
        return None


def _first_present(values: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if values.get(key) is not None:
            return values[key]
    return None

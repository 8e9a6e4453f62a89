from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from trip_costing.services.datasets import pair_point
from trip_costing.services.types import RoutePoint


class Coordinate(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    def to_point(self) -> RoutePoint:
        return RoutePoint(longitude=self.longitude, latitude=self.latitude)

    def label(self) -> str:
        return f"{self.latitude},{self.longitude}"


def parse_coordinate(value: Any) -> Any:
    """Accept ``[a, b]``, ``"a,b"`` or ``{"lat": .., "lon": ..}`` coordinates."""
    if value is None or isinstance(value, Coordinate):
        return value

    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
        if len(parts) < 2:
            raise ValueError("coordinate string must look like 'lat,lon'")
        value = parts

    if isinstance(value, list | tuple):
        point = pair_point(value)
        if point is None:
            raise ValueError("coordinate must contain two numbers")
        return {"latitude": point.latitude, "longitude": point.longitude}

    if isinstance(value, dict):
        latitude = value.get("lat", value.get("latitude"))
        longitude = value.get("lon", value.get("longitude", value.get("lng")))
        if latitude is None or longitude is None:
            raise ValueError("coordinate object needs lat and lon")
        return {"latitude": latitude, "longitude": longitude}

    raise ValueError("unsupported coordinate format")


class TripCostRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, allow_inf_nan=False)

    start: str | None = Field(default=None, min_length=1, max_length=300)
    destination: str | None = Field(default=None, min_length=1, max_length=300)
    start_coord: Coordinate | None = None
    dest_coord: Coordinate | None = None

    vehicle_type: str = Field(min_length=1, max_length=50)
    mileage: float
    fuel_type: str = Field(default="petrol", min_length=1, max_length=30)
    fuel_tank_capacity: float | None = Field(default=None, gt=0.0)

    fuel_cost: float | None = None
    fuel_price: float | None = None
    fuel_rate: float | None = None
    price_per_litre: float | None = None

    kilometers_per_day: float
    da_amount_per_day: float = Field(default=0.0, ge=0.0)
    border_expense: float = Field(default=0.0, ge=0.0)
    loading_unloading: float = Field(default=0.0, ge=0.0)
    tyre: float = Field(default=0.0, ge=0.0)
    incentive: float = Field(default=0.0, ge=0.0)
    additional_cost: float = Field(default=0.0, ge=0.0)

    @field_validator("start_coord", "dest_coord", mode="before")
    @classmethod
    def parse_coordinates(cls, value: Any) -> Any:
        return parse_coordinate(value)

    @model_validator(mode="after")
    def check_endpoints(self) -> TripCostRequest:
        has_text = self.start is not None and self.destination is not None
        has_coords = self.start_coord is not None and self.dest_coord is not None
        if has_text == has_coords:
            raise ValueError(
                "Provide exactly one of start/destination or start_coord/dest_coord"
            )
        return self

    @property
    def uses_coordinates(self) -> bool:
        return self.start_coord is not None and self.dest_coord is not None

    @property
    def per_litre_price(self) -> float | None:
        for value in (self.fuel_price, self.fuel_rate, self.price_per_litre):
            if value is not None and value > 0:
                return value
        return None


class TripSummaryResponse(BaseModel):
    origin: str = Field(serialization_alias="from")
    destination: str = Field(serialization_alias="to")
    vehicle_type: str
    distance_km: float
    duration_hours: float
    mileage: float
    journey_time_days: int
    fuel_tank_capacity: float | None = None


class TollDetailResponse(BaseModel):
    name: str
    lat: float
    lon: float
    fee: float
    distance_from_route_km: float


class TollsResponse(BaseModel):
    total_toll_cost: float
    toll_details: list[TollDetailResponse]


class RefuelResponse(BaseModel):
    price_per_litre: float
    cost: float
    litres_needed: float
    source: str


class FuelResponse(BaseModel):
    total_fuel_needed: float
    total_fuel_cost: float
    refuels: list[RefuelResponse]


class ExtrasResponse(BaseModel):
    border_expense: float
    loading_unloading: float
    tyre: float
    incentive: float
    da_trip_amount: float
    additional_cost: float
    total_extras: float


class FinalCostResponse(BaseModel):
    toll: float
    fuel: float
    extras: float
    total_trip_cost: float


class TripCostResponse(BaseModel):
    trip_summary: TripSummaryResponse
    tolls: TollsResponse
    fuel: FuelResponse
    extras: ExtrasResponse
    final_cost: FinalCostResponse

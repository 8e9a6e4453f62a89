from __future__ import annotations


class TripCostError(Exception):
    """Base exception for trip cost estimation errors."""


class InvalidInputError(TripCostError):
    """Raised when required trip parameters are missing or contradictory."""


class InvalidMileageError(InvalidInputError):
    """Raised when vehicle mileage is not a positive number."""


class GeocodeFailedError(TripCostError):
    """Raised when a text location yields no geocoding candidate."""


class RouteUnavailableError(TripCostError):
    """Raised when no drivable route geometry can be produced."""

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason or message


class ProviderError(TripCostError):
    """Raised when an upstream maps API call fails."""

    def __init__(
        self, message: str, status_code: int | None = None, reason: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason or message


class TripCostInternalError(TripCostError):
    """Raised when the pipeline fails for an unexpected reason."""

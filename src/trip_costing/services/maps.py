from __future__ import annotations

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx
from django.conf import settings
from django.core.cache import cache

from trip_costing.exceptions import ProviderError
from trip_costing.services.types import RoutePoint

logger = logging.getLogger(__name__)

LOG_BODY_LIMIT = 500


@dataclass(slots=True, frozen=True)
class DirectionsResponse:
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def json(self) -> Any:
        return json.loads(self.text)


class MapsClient(ABC):
    """Capabilities a map provider offers to route resolution.

    Subclasses wrap a single upstream API; the resolution algorithm itself
    lives in :class:`trip_costing.services.routing.RouteProvider`.
    """

    name: str = ""
    polyline_precisions: tuple[int, ...] = (6, 5)

    def __init__(self) -> None:
        self.geocode_timeout = settings.GEOCODING_TIMEOUT_SECONDS
        self.directions_timeout = settings.DIRECTIONS_TIMEOUT_SECONDS
        self.snap_timeout = settings.SNAP_TIMEOUT_SECONDS
        self.reverse_geocode_timeout = settings.REVERSE_GEOCODING_TIMEOUT_SECONDS

    def geocode(self, query: str) -> RoutePoint | None:
        cache_key = self._cache_key(query)
        cached = cache.get(cache_key)
        if cached:
            logger.debug("Geocode cache hit for %r", query)
            return RoutePoint(longitude=cached["longitude"], latitude=cached["latitude"])

        point = self._geocode(query)
        if point is not None:
            cache.set(
                cache_key,
                {"longitude": point.longitude, "latitude": point.latitude},
                timeout=settings.GEOCODE_CACHE_TTL_SECONDS,
            )
        return point

    @abstractmethod
    def _geocode(self, query: str) -> RoutePoint | None:
        """Return the first geocoding candidate, or None when nothing matches."""

    @abstractmethod
    def directions(self, origin: RoutePoint, destination: RoutePoint) -> DirectionsResponse:
        """Request a full-overview driving route between two points."""

    @abstractmethod
    def snap_to_road(self, origin: RoutePoint, destination: RoutePoint) -> list[RoutePoint]:
        """Snap both endpoints to the road network; empty when unavailable."""

    @abstractmethod
    def reverse_geocode(self, point: RoutePoint) -> RoutePoint | None:
        """Return the nearest indexed place to a point, or None."""

    @abstractmethod
    def is_unroutable(self, response: DirectionsResponse) -> bool:
        """Whether a failed directions call means an endpoint is off-road."""

    def _request(self, method: str, url: str, *, timeout: float, **kwargs: Any) -> httpx.Response:
        try:
            return httpx.request(method, url, timeout=timeout, **kwargs)
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"{self.name} request failed: {exc.__class__.__name__}",
                reason=f"{self.name}_transport_error",
            ) from exc

    def _get_features_point(self, url: str, *, timeout: float, **kwargs: Any) -> RoutePoint | None:
        response = self._request("GET", url, timeout=timeout, **kwargs)
        if response.status_code != 200:
            raise ProviderError(
                f"{self.name} geocoding request failed",
                status_code=response.status_code,
                reason=f"geocode_http_{response.status_code}",
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(
                f"{self.name} geocoding response is not valid JSON",
                status_code=response.status_code,
                reason="geocode_parse_error",
            ) from exc
        return first_feature_point(payload)

    def _cache_key(self, query: str) -> str:
        digest = hashlib.sha256(f"{self.name}|{query.strip().lower()}".encode()).hexdigest()
        return f"geocode:{digest}"


def first_feature_point(payload: Any) -> RoutePoint | None:
    """Coordinates of the first feature of a GeoJSON FeatureCollection."""
    if not isinstance(payload, dict):
        return None
    features = payload.get("features") or []
    if not features:
        return None
    try:
        coordinates = features[0]["geometry"]["coordinates"]
        return RoutePoint(longitude=float(coordinates[0]), latitude=float(coordinates[1]))
    except (KeyError, IndexError, TypeError, ValueError):
        return None


def truncate(text: str | None, limit: int = LOG_BODY_LIMIT) -> str:
    if not text:
        return "<empty>"
    return text if len(text) <= limit else text[:limit]


def get_maps_client(name: str | None = None) -> MapsClient:
    from trip_costing.services.ola_maps import OlaMapsClient
    from trip_costing.services.openrouteservice import OpenRouteServiceClient

    clients: dict[str, type[MapsClient]] = {
        OlaMapsClient.name: OlaMapsClient,
        OpenRouteServiceClient.name: OpenRouteServiceClient,
    }
    provider = (name or settings.MAPS_PROVIDER).strip().lower()
    try:
        return clients[provider]()
    except KeyError as exc:
        raise ValueError(f"Unknown maps provider: {provider}") from exc

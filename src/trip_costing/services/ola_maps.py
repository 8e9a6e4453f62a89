from __future__ import annotations

import logging
import uuid

from django.conf import settings

from trip_costing.exceptions import ProviderError
from trip_costing.services.maps import DirectionsResponse, MapsClient, first_feature_point, truncate
from trip_costing.services.types import RoutePoint

logger = logging.getLogger(__name__)

UNROUTABLE_MARKERS = ("Route Not Found", "Could not find routable point")


def _lat_lng(point: RoutePoint) -> str:
    return f"{point.latitude:.6f},{point.longitude:.6f}"


class OlaMapsClient(MapsClient):
    name = "ola"
    polyline_precisions = (6, 5)

    def __init__(self) -> None:
        super().__init__()
        self.base_url = settings.OLA_MAPS_BASE_URL.rstrip("/")
        self.api_key = settings.OLA_MAPS_API_KEY
        if not self.api_key:
            logger.warning("Ola Maps API key (OLA_MAPS_API_KEY) is not configured")

    def _geocode(self, query: str) -> RoutePoint | None:
        return self._get_features_point(
            f"{self.base_url}/places/v1/geocode",
            params={"input": query, "size": 1, "api_key": self.api_key},
            timeout=self.geocode_timeout,
        )

    def directions(self, origin: RoutePoint, destination: RoutePoint) -> DirectionsResponse:
        params = {
            "origin": _lat_lng(origin),
            "destination": _lat_lng(destination),
            "overview": "full",
            "steps": "false",
            "api_key": self.api_key,
        }
        logger.info(
            "Ola directions request origin=%s destination=%s",
            params["origin"],
            params["destination"],
        )
        response = self._request(
            "POST",
            f"{self.base_url}/routing/v1/directions",
            params=params,
            headers={"X-Request-Id": str(uuid.uuid4()), "Accept": "application/json"},
            timeout=self.directions_timeout,
        )
        if response.status_code != 200:
            logger.warning(
                "Ola directions request failed: status=%s body=%s",
                response.status_code,
                truncate(response.text),
            )
        return DirectionsResponse(status_code=response.status_code, text=response.text)

    def snap_to_road(self, origin: RoutePoint, destination: RoutePoint) -> list[RoutePoint]:
        try:
            response = self._request(
                "GET",
                f"{self.base_url}/routing/v1/snapToRoad",
                params={
                    "points": f"{_lat_lng(origin)}|{_lat_lng(destination)}",
                    "api_key": self.api_key,
                },
                timeout=self.snap_timeout,
            )
            if response.status_code != 200:
                return []
            snapped_points = response.json().get("snapped_points") or []
        except (ProviderError, ValueError, AttributeError) as exc:
            logger.warning("Ola snapToRoad failed: %s", exc)
            return []

        snapped: list[RoutePoint] = []
        for item in snapped_points:
            location = item.get("location") if isinstance(item, dict) else None
            if not isinstance(location, dict):
                continue
            try:
                snapped.append(
                    RoutePoint(longitude=float(location["lng"]), latitude=float(location["lat"]))
                )
            except (KeyError, TypeError, ValueError):
                continue
        return snapped

    def reverse_geocode(self, point: RoutePoint) -> RoutePoint | None:
        try:
            response = self._request(
                "GET",
                f"{self.base_url}/places/v1/reverse-geocode",
                params={"location": _lat_lng(point), "size": 1, "api_key": self.api_key},
                timeout=self.reverse_geocode_timeout,
            )
            if response.status_code != 200:
                return None
            return first_feature_point(response.json())
        except (ProviderError, ValueError) as exc:
            logger.warning("Ola reverse geocode failed: %s", exc)
            return None

    def is_unroutable(self, response: DirectionsResponse) -> bool:
        if response.status_code == 404:
            return True
        return any(marker in response.text for marker in UNROUTABLE_MARKERS)

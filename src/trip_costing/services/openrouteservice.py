from __future__ import annotations

import logging

from django.conf import settings

from trip_costing.exceptions import ProviderError
from trip_costing.services.maps import DirectionsResponse, MapsClient, first_feature_point, truncate
from trip_costing.services.types import RoutePoint

logger = logging.getLogger(__name__)

UNROUTABLE_MARKER = "Could not find routable point"
PROFILE = "driving-car"


def _lon_lat(point: RoutePoint) -> list[float]:
    return [point.longitude, point.latitude]


class OpenRouteServiceClient(MapsClient):
    name = "ors"
    polyline_precisions = (5, 6)

    def __init__(self) -> None:
        super().__init__()
        self.base_url = settings.ORS_BASE_URL.rstrip("/")
        self.api_key = settings.ORS_API_KEY
        self.snap_radius_meters = settings.ORS_SNAP_RADIUS_METERS
        if not self.api_key:
            logger.warning("OpenRouteService API key (ORS_API_KEY) is not configured")

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.api_key, "Accept": "application/json"}

    def _geocode(self, query: str) -> RoutePoint | None:
        return self._get_features_point(
            f"{self.base_url}/geocode/search",
            params={"text": query, "size": 1},
            headers=self._headers,
            timeout=self.geocode_timeout,
        )

    def directions(self, origin: RoutePoint, destination: RoutePoint) -> DirectionsResponse:
        body = {"coordinates": [_lon_lat(origin), _lon_lat(destination)]}
        logger.info("ORS directions request body=%s", body)
        response = self._request(
            "POST",
            f"{self.base_url}/v2/directions/{PROFILE}",
            json=body,
            headers=self._headers,
            timeout=self.directions_timeout,
        )
        if response.status_code != 200:
            logger.warning(
                "ORS directions request failed: status=%s body=%s",
                response.status_code,
                truncate(response.text),
            )
        return DirectionsResponse(status_code=response.status_code, text=response.text)

    def snap_to_road(self, origin: RoutePoint, destination: RoutePoint) -> list[RoutePoint]:
        try:
            response = self._request(
                "POST",
                f"{self.base_url}/v2/snap/{PROFILE}/json",
                json={
                    "locations": [_lon_lat(origin), _lon_lat(destination)],
                    "radius": self.snap_radius_meters,
                },
                headers=self._headers,
                timeout=self.snap_timeout,
            )
            if response.status_code != 200:
                return []
            locations = response.json().get("locations") or []
        except (ProviderError, ValueError, AttributeError) as exc:
            logger.warning("ORS snap failed: %s", exc)
            return []

        snapped: list[RoutePoint] = []
        for item in locations:
            # unsnappable inputs come back as null entries
            if not isinstance(item, dict):
                continue
            try:
                lon, lat = item["location"][:2]
                snapped.append(RoutePoint(longitude=float(lon), latitude=float(lat)))
            except (KeyError, TypeError, ValueError):
                continue
        return snapped

    def reverse_geocode(self, point: RoutePoint) -> RoutePoint | None:
        try:
            response = self._request(
                "GET",
                f"{self.base_url}/geocode/reverse",
                params={"point.lat": point.latitude, "point.lon": point.longitude, "size": 1},
                headers=self._headers,
                timeout=self.reverse_geocode_timeout,
            )
            if response.status_code != 200:
                return None
            return first_feature_point(response.json())
        except (ProviderError, ValueError) as exc:
            logger.warning("ORS reverse geocode failed: %s", exc)
            return None

    def is_unroutable(self, response: DirectionsResponse) -> bool:
        return response.status_code == 404 and UNROUTABLE_MARKER in response.text

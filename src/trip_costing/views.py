from __future__ import annotations

import json
import logging
from typing import Any

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
from pydantic import ValidationError

from trip_costing.exceptions import (
    GeocodeFailedError,
    InvalidInputError,
    ProviderError,
    RouteUnavailableError,
    TripCostInternalError,
)
from trip_costing.schemas import TripCostRequest
from trip_costing.services.datasets import load_fuel_prices, load_toll_plazas
from trip_costing.services.pipeline import TripCostPipeline

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_pipeline: TripCostPipeline | None = None


def get_trip_cost_pipeline() -> TripCostPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = TripCostPipeline()
    return _pipeline


@require_GET
def health_view(_: HttpRequest) -> HttpResponse:
    return JsonResponse(
        {
            "status": "ok",
            "provider": settings.MAPS_PROVIDER,
            "datasets": {
                "toll_plazas": len(load_toll_plazas()),
                "fuel_prices": len(load_fuel_prices(settings.DEFAULT_FUEL_TYPE)),
            },
        }
    )


@csrf_exempt
@require_POST
def trip_expense_view(request: HttpRequest) -> HttpResponse:
    payload = _parse_payload(request)
    if isinstance(payload, JsonResponse):
        return payload

    try:
        trip_request = TripCostRequest.model_validate(payload)
    except ValidationError as exc:
        return JsonResponse(
            {
                "error": {
                    "code": "validation_error",
                    "message": "Invalid request payload",
                    "details": exc.errors(include_url=False, include_context=False),
                }
            },
            status=400,
        )

    pipeline = get_trip_cost_pipeline()
    try:
        response = pipeline.estimate(trip_request)
    except InvalidInputError as exc:
        return _error_response("invalid_input", str(exc), status=400)
    except GeocodeFailedError as exc:
        return _error_response("geocode_failed", str(exc), status=400)
    except RouteUnavailableError as exc:
        return _error_response(
            "no_route", "Failed to compute route", status=400, reason=exc.reason
        )
    except ProviderError as exc:
        return _error_response(
            "upstream_error",
            str(exc),
            status=502,
            reason=exc.reason,
            upstream_status=exc.status_code,
        )
    except TripCostInternalError as exc:
        return _error_response("internal_error", str(exc), status=500)

    return JsonResponse(
        response.model_dump(mode="json", by_alias=True, exclude_none=True), status=200
    )


def _parse_payload(request: HttpRequest) -> dict[str, Any] | JsonResponse:
    content_type = (request.content_type or "").lower()
    if content_type in FORM_CONTENT_TYPES:
        return request.POST.dict()

    if not request.body:
        return request.GET.dict()

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return _error_response("invalid_json", "Request body must be valid JSON", status=400)

    if not isinstance(payload, dict):
        return _error_response("invalid_json", "JSON body must be an object", status=400)

    return payload


def _error_response(code: str, message: str, status: int, **extra: Any) -> JsonResponse:
    error = {"code": code, "message": message}
    error.update({key: value for key, value in extra.items() if value is not None})
    return JsonResponse({"error": error}, status=status)

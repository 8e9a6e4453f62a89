from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from trip_costing.exceptions import ProviderError
from trip_costing.services.datasets import clear_dataset_cache
from trip_costing.services.maps import get_maps_client


class Command(BaseCommand):
    help = "Fill missing city locations in the fuel price dataset using the maps geocoder."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--path",
            type=str,
            default=str(settings.FUEL_PRICES_PATH),
            help="Fuel price JSON dataset to update in place",
        )
        parser.add_argument(
            "--limit", type=int, default=50, help="Max cities to geocode in one run"
        )
        parser.add_argument(
            "--sleep-seconds",
            type=float,
            default=0.5,
            help="Sleep interval between geocoding requests",
        )
        parser.add_argument(
            "--provider",
            type=str,
            default=None,
            help="Maps provider to geocode with (defaults to MAPS_PROVIDER)",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        path = Path(options["path"])
        if not path.exists():
            raise CommandError(f"Fuel price dataset does not exist: {path}")
        limit = max(1, options["limit"])
        sleep_seconds = max(0.0, options["sleep_seconds"])

        dataset = json.loads(path.read_text(encoding="utf-8"))
        pending = [
            (state, city, values)
            for state, cities in dataset.items()
            for city, values in cities.items()
            if isinstance(values, dict) and not values.get("location")
        ][:limit]
        if not pending:
            self.stdout.write(self.style.WARNING("No cities to geocode"))
            return

        client = get_maps_client(options["provider"])

        geocoded = 0
        failed = 0
        for state, city, values in pending:
            try:
                point = client.geocode(f"{city}, {state}, India")
            except ProviderError:
                point = None
            if point is None:
                failed += 1
            else:
                values["location"] = {"lat": point.latitude, "lng": point.longitude}
                geocoded += 1
            if sleep_seconds:
                time.sleep(sleep_seconds)

        path.write_text(json.dumps(dataset, indent=2, sort_keys=True), encoding="utf-8")
        clear_dataset_cache()

        self.stdout.write(
            self.style.SUCCESS(
                f"Geocode run complete: {geocoded} succeeded, {failed} failed (limit={limit})"
            )
        )

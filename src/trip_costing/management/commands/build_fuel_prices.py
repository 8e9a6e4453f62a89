from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import polars as pl
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from trip_costing.services.datasets import clear_dataset_cache


class Command(BaseCommand):
    help = "Build the state/city fuel price dataset from a CSV using Polars."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--csv-path",
            type=str,
            required=True,
            help="Path to the source fuel prices CSV",
        )
        parser.add_argument(
            "--output",
            type=str,
            default=str(settings.FUEL_PRICES_PATH),
            help="Path of the fuel price JSON dataset to write",
        )
        parser.add_argument(
            "--replace",
            action="store_true",
            help="Discard cities already present in the output file",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        csv_path = Path(options["csv_path"])
        if not csv_path.exists():
            raise CommandError(f"CSV file does not exist: {csv_path}")

        output_path = Path(options["output"])
        frame = self._load_and_transform(csv_path)
        records = frame.to_dicts()

        dataset: dict[str, dict[str, dict[str, Any]]] = {}
        if output_path.exists() and not options["replace"]:
            try:
                dataset = json.loads(output_path.read_text(encoding="utf-8"))
            except ValueError as exc:
                raise CommandError(f"Existing dataset is not valid JSON: {output_path}") from exc

        created = 0
        updated = 0
        for row in records:
            city = dataset.setdefault(row["state"], {}).setdefault(row["city"], {})
            if row["fuel_type"] in city:
                updated += 1
            else:
                created += 1
            city[row["fuel_type"]] = round(row["price"], 2)
            if row["latitude"] is not None and row["longitude"] is not None:
                city["location"] = {"lat": row["latitude"], "lng": row["longitude"]}

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(dataset, indent=2, sort_keys=True), encoding="utf-8")
        clear_dataset_cache()

        self.stdout.write(
            self.style.SUCCESS(
                "Built fuel price dataset: "
                + f"{len(records)} rows normalized, {created} prices added, {updated} updated"
            )
        )

    @staticmethod
    def _load_and_transform(csv_path: Path) -> pl.DataFrame:
        frame = pl.read_csv(csv_path, infer_schema_length=5000)
        required_columns = {"State", "City", "Fuel Type", "Price"}
        missing_columns = required_columns.difference(frame.columns)
        if missing_columns:
            raise CommandError(f"Missing expected columns: {sorted(missing_columns)}")

        for optional in ("Latitude", "Longitude"):
            if optional not in frame.columns:
                frame = frame.with_columns(pl.lit(None, dtype=pl.Float64).alias(optional))

        return (
            frame.select(
                pl.col("State")
                .cast(pl.Utf8, strict=False)
                .str.strip_chars()
                .fill_null("")
                .alias("state"),
                pl.col("City")
                .cast(pl.Utf8, strict=False)
                .str.strip_chars()
                .fill_null("")
                .alias("city"),
                pl.col("Fuel Type")
                .cast(pl.Utf8, strict=False)
                .str.strip_chars()
                .str.to_lowercase()
                .fill_null("")
                .alias("fuel_type"),
                pl.col("Price").cast(pl.Float64, strict=False).alias("price"),
                pl.col("Latitude").cast(pl.Float64, strict=False).alias("latitude"),
                pl.col("Longitude").cast(pl.Float64, strict=False).alias("longitude"),
            )
            .filter(
                pl.col("price").is_not_null()
                & (pl.col("price") > 0)
                & (pl.col("state").str.len_chars() > 0)
                & (pl.col("city").str.len_chars() > 0)
                & (pl.col("fuel_type").str.len_chars() > 0)
            )
            .sort(["state", "city", "fuel_type", "price"])
            .unique(subset=["state", "city", "fuel_type"], keep="first", maintain_order=True)
        )

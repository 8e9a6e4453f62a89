from __future__ import annotations

import json
from io import StringIO
from pathlib import Path

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from trip_costing.exceptions import ProviderError
from trip_costing.services.datasets import load_fuel_prices
from trip_costing.services.types import RoutePoint


def _write_csv(tmp_path: Path, rows: list[str]) -> Path:
    csv_path = tmp_path / "fuel.csv"
    csv_path.write_text("\n".join(rows), encoding="utf-8")
    return csv_path


def test_build_fuel_prices_keeps_cheapest_and_drops_invalid(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path,
        [
            "State,City,Fuel Type,Price,Latitude,Longitude",
            "Delhi,New Delhi,Petrol,94.77,28.6139,77.209",
            "Delhi,New Delhi,PETROL,94.50,28.6139,77.209",
            "Delhi,New Delhi,Diesel,87.67,28.6139,77.209",
            "Kerala,Kochi,Petrol,0,9.93,76.26",
            " Rajasthan , Jaipur ,Petrol,104.72,,",
        ],
    )
    output = tmp_path / "fuel_prices.json"
    stdout = StringIO()

    call_command(
        "build_fuel_prices", csv_path=str(csv_path), output=str(output), stdout=stdout
    )

    dataset = json.loads(output.read_text(encoding="utf-8"))
    assert dataset["Delhi"]["New Delhi"]["petrol"] == 94.5
    assert dataset["Delhi"]["New Delhi"]["diesel"] == 87.67
    assert dataset["Delhi"]["New Delhi"]["location"] == {"lat": 28.6139, "lng": 77.209}
    assert dataset["Rajasthan"]["Jaipur"] == {"petrol": 104.72}
    assert "Kerala" not in dataset
    assert "3 prices added" in stdout.getvalue()
    assert [entry.city for entry in load_fuel_prices("petrol", output)] == ["New Delhi", "Jaipur"]


def test_build_fuel_prices_merges_into_existing_dataset(tmp_path: Path, write_json) -> None:
    output = write_json(
        "fuel_prices.json",
        {"Haryana": {"Gurugram": {"petrol": 96.0}}, "Delhi": {"New Delhi": {"petrol": 95.0}}},
    )
    csv_path = _write_csv(
        tmp_path, ["State,City,Fuel Type,Price", "Delhi,New Delhi,petrol,94.77"]
    )
    stdout = StringIO()

    call_command(
        "build_fuel_prices", csv_path=str(csv_path), output=str(output), stdout=stdout
    )

    dataset = json.loads(output.read_text(encoding="utf-8"))
    assert dataset["Haryana"]["Gurugram"]["petrol"] == 96.0
    assert dataset["Delhi"]["New Delhi"]["petrol"] == 94.77
    assert "0 prices added, 1 updated" in stdout.getvalue()


def test_build_fuel_prices_replace_discards_existing(tmp_path: Path, write_json) -> None:
    output = write_json("fuel_prices.json", {"Haryana": {"Gurugram": {"petrol": 96.0}}})
    csv_path = _write_csv(tmp_path, ["State,City,Fuel Type,Price", "Delhi,New Delhi,petrol,94.77"])

    call_command(
        "build_fuel_prices",
        csv_path=str(csv_path),
        output=str(output),
        replace=True,
        stdout=StringIO(),
    )

    assert list(json.loads(output.read_text(encoding="utf-8"))) == ["Delhi"]


def test_build_fuel_prices_requires_expected_columns(tmp_path: Path) -> None:
    csv_path = _write_csv(tmp_path, ["State,City,Price", "Delhi,New Delhi,94.77"])

    with pytest.raises(CommandError, match="Fuel Type"):
        call_command(
            "build_fuel_prices", csv_path=str(csv_path), output=str(tmp_path / "out.json")
        )


def test_geocode_fuel_cities_fills_missing_locations(mocker, write_json) -> None:
    path = write_json(
        "fuel_prices.json",
        {
            "Delhi": {"New Delhi": {"petrol": 94.77, "location": {"lat": 28.6, "lng": 77.2}}},
            "Rajasthan": {"Jaipur": {"petrol": 104.72}, "Kota": {"petrol": 105.1}},
        },
    )
    client = mocker.Mock()
    client.geocode.side_effect = [
        RoutePoint(longitude=75.7873, latitude=26.9124),
        ProviderError("Geocoding failed", status_code=503),
    ]
    get_client = mocker.patch(
        "trip_costing.management.commands.geocode_fuel_cities.get_maps_client",
        return_value=client,
    )
    stdout = StringIO()

    call_command(
        "geocode_fuel_cities",
        path=str(path),
        sleep_seconds=0,
        provider="ors",
        stdout=stdout,
    )

    get_client.assert_called_once_with("ors")
    assert [call.args[0] for call in client.geocode.call_args_list] == [
        "Jaipur, Rajasthan, India",
        "Kota, Rajasthan, India",
    ]
    dataset = json.loads(path.read_text(encoding="utf-8"))
    assert dataset["Rajasthan"]["Jaipur"]["location"] == {"lat": 26.9124, "lng": 75.7873}
    assert "location" not in dataset["Rajasthan"]["Kota"]
    assert "1 succeeded, 1 failed" in stdout.getvalue()


def test_geocode_fuel_cities_noop_when_all_located(mocker, write_json) -> None:
    path = write_json(
        "fuel_prices.json",
        {"Delhi": {"New Delhi": {"petrol": 94.77, "location": {"lat": 28.6, "lng": 77.2}}}},
    )
    get_client = mocker.patch(
        "trip_costing.management.commands.geocode_fuel_cities.get_maps_client"
    )
    stdout = StringIO()

    call_command("geocode_fuel_cities", path=str(path), stdout=stdout)

    get_client.assert_not_called()
    assert "No cities to geocode" in stdout.getvalue()

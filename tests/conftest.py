from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from django.core.cache import cache
from django.test import Client

from trip_costing.services.datasets import clear_dataset_cache


@pytest.fixture
def api_client() -> Client:
    return Client()


@pytest.fixture(autouse=True)
def _reset_caches() -> Iterator[None]:
    cache.clear()
    clear_dataset_cache()
    yield
    cache.clear()
    clear_dataset_cache()


@pytest.fixture
def write_json(tmp_path: Path):
    def _write(name: str, payload: object) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write

"""Pytest configuration for simpledb-splits."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest
from fakes import FakeSdbClient, make_items

from sdbsplits.config import StoreConfig, get_settings

_ENV_KEYS = (
    "SIMPLEDB_AWS_ACCESS_KEY",
    "SIMPLEDB_AWS_SECRET_KEY",
    "SIMPLEDB_AWS_REGION",
    "SIMPLEDB_DOMAIN",
    "SIMPLEDB_WHERE_QUERY",
    "SIMPLEDB_SPLIT_SIZE",
    "SIMPLEDB_BOUNDARY_MODE",
    "SIMPLEDB_CONSISTENT_READ",
    "SIMPLEDB_CONNECT_TIMEOUT",
    "SIMPLEDB_READ_TIMEOUT",
    "JOB_PROCESSES",
    "JOB_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "LOG_JSON",
)


@pytest.fixture
def items_250() -> List[Dict[str, Any]]:
    return make_items(250)


@pytest.fixture
def fake_client(items_250) -> FakeSdbClient:
    return FakeSdbClient(items_250)


@pytest.fixture
def patch_build_client(monkeypatch):
    """
    Route every StoreClient built from a config to a fresh FakeSdbClient.

    Call the fixture value with the domain items (and FakeSdbClient keyword
    arguments); it returns the list the created fakes are appended to.
    """
    created: List[FakeSdbClient] = []

    def install(items: List[Dict[str, Any]], **kwargs: Any) -> List[FakeSdbClient]:
        def factory(config: StoreConfig) -> FakeSdbClient:
            fake = FakeSdbClient(items, **kwargs)
            created.append(fake)
            return fake

        monkeypatch.setattr("sdbsplits.infrastructure.store_client.build_client", factory)
        return created

    return install


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep the developer's environment and .env file out of the tests."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

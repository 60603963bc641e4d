"""Shared pytest fixtures for dazzle-wire tests."""

from __future__ import annotations

import fnmatch
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dazzle_wire.computed import PersistentComputedCache
from dazzle_wire.config import WireConfig
from dazzle_wire.examples import registry as example_registry
from dazzle_wire.registry import ComponentRegistry

SECRET = "test-secret"


@pytest.fixture
def registry() -> ComponentRegistry:
    """Registry holding the example components (post-search, counter)."""
    return example_registry


@pytest.fixture
def config(tmp_path: Path) -> WireConfig:
    """Runtime config with a fixed secret and a temporary log dir."""
    return WireConfig(secret_key=SECRET, log_dir=tmp_path / "logs")


@pytest.fixture
def redis_store() -> dict[str, str]:
    """Backing dict of the mocked Redis client used by ``persistent_cache``."""
    return {}


@pytest.fixture
def mock_redis(redis_store: dict[str, str]) -> MagicMock:
    """Mocked sync Redis client storing values in ``redis_store``."""
    client = MagicMock()
    client.get.side_effect = redis_store.get
    client.setex.side_effect = lambda key, ttl, value: redis_store.__setitem__(key, value)
    client.delete.side_effect = lambda *keys: sum(
        redis_store.pop(key, None) is not None for key in keys
    )
    client.scan_iter.side_effect = lambda match: [
        key for key in list(redis_store) if fnmatch.fnmatchcase(key, match)
    ]
    return client


@pytest.fixture
def persistent_cache(mock_redis: MagicMock) -> PersistentComputedCache:
    """Persistent computed cache with the mocked Redis client injected."""
    cache = PersistentComputedCache(enabled=False)
    cache._redis = mock_redis
    return cache

"""Test fixtures."""

from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from air_quality_proxy.config import Settings, get_settings
from air_quality_proxy.main import create_app
from air_quality_proxy.services.cache import CacheService
from air_quality_proxy.services.cache_backends import CacheBackend, MemoryCacheBackend
from air_quality_proxy.services.open_meteo import OpenMeteoClient


@pytest.fixture
def failing_backend() -> AsyncMock:
    """Create cache backend whose every operation raises."""
    backend = AsyncMock(spec=CacheBackend)
    backend.get_record.side_effect = ConnectionError("connection refused")
    backend.put_record.side_effect = ConnectionError("connection refused")
    backend.ping.side_effect = ConnectionError("connection refused")
    return backend


@pytest.fixture
def upstream_body() -> dict[str, Any]:
    """Open-Meteo air-quality response body."""
    return {
        "latitude": 40.7128,
        "longitude": -74.0060,
        "current": {
            "time": "2024-01-01T12:00:00Z",
            "interval": 900,
            "us_aqi": 50,
            "pm10": 25.5,
            "pm2_5": 15.2,
        },
    }


@pytest.fixture
def expected_reading() -> dict[str, Any]:
    """Reading produced from ``upstream_body``."""
    return {
        "latitude": 40.7128,
        "longitude": -74.0060,
        "current": {
            "time": "2024-01-01T12:00:00Z",
            "usAqi": 50,
            "pm10": 25.5,
            "pm25": 15.2,
        },
    }


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        cache_table_name="test-cache-table",
        cache_ttl_seconds=3600,
        cache_max_size=1000,
        upstream_timeout_seconds=1.0,
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def memory_backend(settings: Settings) -> MemoryCacheBackend:
    """Create in-memory cache backend."""
    return MemoryCacheBackend(settings.cache_table_name, settings.cache_max_size)


@pytest.fixture
def cache_service(memory_backend: MemoryCacheBackend, settings: Settings) -> CacheService:
    """Create test cache service."""
    return CacheService(memory_backend, settings.cache_ttl_seconds)


@pytest.fixture
def open_meteo_client(settings: Settings) -> OpenMeteoClient:
    """Create test Open-Meteo client."""
    return OpenMeteoClient(settings)


@pytest.fixture
def app(settings: Settings, cache_service: CacheService) -> Iterator[FastAPI]:
    """Create test application."""
    get_settings.cache_clear()
    yield create_app(settings, cache_service=cache_service)
    get_settings.cache_clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)

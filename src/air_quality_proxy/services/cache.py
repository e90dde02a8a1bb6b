"""Cache service for air quality readings."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

import structlog
from prometheus_client import Counter

from air_quality_proxy.api.schemas import AirQualityReading
from air_quality_proxy.config import Settings
from air_quality_proxy.services.cache_backends import (
    CacheBackend,
    MemoryCacheBackend,
    RedisCacheBackend,
)

logger = structlog.get_logger()

# Metrics
cache_hits = Counter("cache_hits_total", "Total cache hits")
cache_misses = Counter("cache_misses_total", "Total cache misses")
cache_writes = Counter("cache_writes_total", "Total successful cache writes")
cache_faults = Counter(
    "cache_faults_total",
    "Total cache operations that failed",
    ["operation"],
)


@dataclass(frozen=True)
class CacheLookup:
    """Outcome of a cache read."""

    status: Literal["hit", "miss", "fault"]
    reading: AirQualityReading | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class CacheWrite:
    """Outcome of a cache write."""

    status: Literal["stored", "fault"]
    expires_at: int | None = None
    error: Exception | None = None


class CacheService:
    """Fail-soft cache of air quality readings keyed by location.

    Backend failures never propagate: :meth:`lookup` and :meth:`store` report
    them as ``fault`` results, while :meth:`get` and :meth:`put` discard them.
    A broken cache therefore degrades to always fetching from upstream.
    """

    def __init__(
        self,
        backend: CacheBackend,
        ttl_seconds: int,
        timer: Callable[[], float] = time.time,
    ) -> None:
        """Initialize cache with a backend, record TTL and wall clock."""
        self._backend = backend
        self._ttl_seconds = ttl_seconds
        self._timer = timer

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheService:
        """Build the cache with the backend selected in settings."""
        backend: CacheBackend
        if settings.cache_backend == "redis":
            backend = RedisCacheBackend.from_url(settings.redis_url, settings.cache_table_name)
        else:
            backend = MemoryCacheBackend(settings.cache_table_name, settings.cache_max_size)
        return cls(backend, settings.cache_ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        """Return the TTL applied to new records."""
        return self._ttl_seconds

    async def lookup(self, key: str) -> CacheLookup:
        """Look up the reading cached under ``key``."""
        try:
            record = await self._backend.get_record(key)
            data = record.get("data") if record else None
            reading = AirQualityReading.model_validate(data) if data else None
        except Exception as e:
            cache_faults.labels(operation="read").inc()
            logger.warning("Error reading from cache", location_key=key, error=str(e))
            return CacheLookup(status="fault", error=e)

        if reading is None:
            cache_misses.inc()
            logger.debug("Cache miss", location_key=key)
            return CacheLookup(status="miss")

        cache_hits.inc()
        logger.debug("Cache hit", location_key=key)
        return CacheLookup(status="hit", reading=reading)

    async def get(self, key: str) -> AirQualityReading | None:
        """Get the cached reading, treating faults as misses."""
        return (await self.lookup(key)).reading

    async def store(self, key: str, reading: AirQualityReading) -> CacheWrite:
        """Write ``reading`` under ``key`` with a fresh expiry."""
        expires_at = int(self._timer()) + self._ttl_seconds
        try:
            await self._backend.put_record(
                {
                    "locationKey": key,
                    "data": reading.model_dump(mode="json", exclude_none=True),
                    "ttl": expires_at,
                }
            )
        except Exception as e:
            cache_faults.labels(operation="write").inc()
            logger.warning("Error writing to cache", location_key=key, error=str(e))
            return CacheWrite(status="fault", error=e)

        cache_writes.inc()
        logger.debug(
            "Cached reading",
            location_key=key,
            expires_at=expires_at,
            ttl_seconds=self._ttl_seconds,
        )
        return CacheWrite(status="stored", expires_at=expires_at)

    async def put(self, key: str, reading: AirQualityReading) -> None:
        """Cache ``reading`` on a best-effort basis."""
        await self.store(key, reading)

    async def is_healthy(self) -> bool:
        """Check if the cache backend is reachable."""
        try:
            return await self._backend.ping()
        except Exception as e:
            logger.warning("Cache health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the backend."""
        await self._backend.close()

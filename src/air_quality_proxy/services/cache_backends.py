"""Storage backends for cache records.

A backend stores records of the form ``{"locationKey", "data", "ttl"}`` where
``ttl`` is an absolute expiry in epoch seconds, and is responsible for
dropping records once that instant has passed. Backends raise freely; the
fail-soft policy lives in :class:`~air_quality_proxy.services.cache.CacheService`.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import redis.asyncio as aioredis
from cachetools import TLRUCache

CacheRecord = dict[str, Any]


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol for key-value stores with per-record expiry."""

    async def get_record(self, key: str) -> CacheRecord | None:
        """Return the stored record for ``key`` or None if absent."""
        ...

    async def put_record(self, record: CacheRecord) -> None:
        """Store ``record`` under its ``locationKey``, overwriting any previous one."""
        ...

    async def ping(self) -> bool:
        """Check that the store is reachable."""
        ...

    async def close(self) -> None:
        """Release any held connections."""
        ...


def _record_ttu(_key: str, record: CacheRecord, _now: float) -> float:
    return float(record["ttl"])


class MemoryCacheBackend:
    """In-process backend expiring each record at its own ``ttl``."""

    def __init__(
        self,
        namespace: str,
        maxsize: int,
        timer: Callable[[], float] = time.time,
    ) -> None:
        self._namespace = namespace
        self._records: TLRUCache[str, CacheRecord] = TLRUCache(
            maxsize=maxsize,
            ttu=_record_ttu,
            timer=timer,
        )

    def _storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get_record(self, key: str) -> CacheRecord | None:
        return self._records.get(self._storage_key(key))

    async def put_record(self, record: CacheRecord) -> None:
        self._records[self._storage_key(record["locationKey"])] = record

    async def ping(self) -> bool:
        # In-process, nothing to reach
        return True

    async def close(self) -> None:
        self._records.clear()

    @property
    def size(self) -> int:
        """Return current number of live records."""
        self._records.expire()
        return len(self._records)


class RedisCacheBackend:
    """Redis backend storing each record as JSON, expired by Redis at ``ttl``."""

    def __init__(self, client: aioredis.Redis, namespace: str) -> None:
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str) -> RedisCacheBackend:
        """Create a backend with its own connection pool."""
        return cls(aioredis.from_url(url), namespace)

    def _storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get_record(self, key: str) -> CacheRecord | None:
        raw: bytes | str | None = await self._client.get(self._storage_key(key))
        if raw is None:
            return None
        record = json.loads(raw)
        if not isinstance(record, dict):
            raise ValueError(f"Malformed cache record for key {key!r}")
        return record

    async def put_record(self, record: CacheRecord) -> None:
        await self._client.set(
            self._storage_key(record["locationKey"]),
            json.dumps(record),
            exat=int(record["ttl"]),
        )

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()

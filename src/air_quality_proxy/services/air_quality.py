"""Air quality service orchestrating cache and upstream client."""

import asyncio

import structlog

from air_quality_proxy.api.schemas import AirQualityReading
from air_quality_proxy.services.cache import CacheService
from air_quality_proxy.services.keys import make_key
from air_quality_proxy.services.open_meteo import OpenMeteoClient, OpenMeteoError

logger = structlog.get_logger()


class AirQualityFetchError(Exception):
    """Raised when a reading could be neither served from cache nor fetched."""


class AirQualityService:
    """Service for fetching air quality data with caching."""

    def __init__(
        self,
        cache: CacheService,
        client: OpenMeteoClient,
        coalesce_requests: bool = False,
    ) -> None:
        """Initialize service with cache and client.

        With ``coalesce_requests`` enabled, concurrent cache misses for the
        same key share the first caller's upstream fetch and cache write.
        """
        self._cache = cache
        self._client = client
        self._coalesce = coalesce_requests
        self._inflight: dict[str, asyncio.Task[AirQualityReading]] = {}

    async def get_air_quality(self, latitude: float, longitude: float) -> AirQualityReading:
        """Get current air quality for coordinates.

        Checks cache first, fetches from upstream on cache miss and caches
        the result. Cache failures are treated as misses.

        Args:
            latitude: Latitude
            longitude: Longitude

        Returns:
            Air quality reading for the location

        Raises:
            AirQualityFetchError: If the upstream fetch fails
        """
        key = make_key(latitude, longitude)

        # Check cache first
        cached = await self._cache.get(key)
        if cached is not None:
            logger.info(
                "Cache hit for air quality request",
                location_key=key,
                cache_hit=True,
            )
            return cached

        logger.info(
            "Cache miss, fetching from upstream",
            latitude=latitude,
            longitude=longitude,
            location_key=key,
            cache_hit=False,
        )

        # Fetch from upstream
        try:
            if self._coalesce:
                return await self._fetch_coalesced(key, latitude, longitude)
            return await self._fetch_and_cache(key, latitude, longitude)

        except OpenMeteoError as e:
            logger.error(
                "Error fetching air quality data",
                location_key=key,
                error=str(e),
            )
            raise AirQualityFetchError(f"Failed to fetch air quality data: {e}") from e

    async def _fetch_and_cache(
        self, key: str, latitude: float, longitude: float
    ) -> AirQualityReading:
        reading = await self._client.fetch_current(latitude, longitude)
        # Cache the response
        await self._cache.put(key, reading)
        return reading

    async def _fetch_coalesced(
        self, key: str, latitude: float, longitude: float
    ) -> AirQualityReading:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_cache(key, latitude, longitude))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            logger.debug("Joining in-flight upstream fetch", location_key=key)
        # A cancelled waiter must not cancel the fetch other waiters share
        return await asyncio.shield(task)

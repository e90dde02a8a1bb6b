"""Application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from air_quality_proxy import __version__
from air_quality_proxy.api.routes import api_router, health_router
from air_quality_proxy.config import Settings, get_settings
from air_quality_proxy.middleware.logging import LoggingMiddleware, configure_logging
from air_quality_proxy.services.air_quality import AirQualityService
from air_quality_proxy.services.cache import CacheService
from air_quality_proxy.services.open_meteo import OpenMeteoClient


def create_app(
    settings: Settings | None = None,
    cache_service: CacheService | None = None,
    client: OpenMeteoClient | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Settings default to the environment; the cache and upstream client can be
    passed in to replace the ones built from settings.
    """
    settings = settings or get_settings()

    configure_logging(settings)

    cache = cache_service or CacheService.from_settings(settings)
    service = AirQualityService(
        cache,
        client or OpenMeteoClient(settings),
        coalesce_requests=settings.coalesce_requests,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        structlog.get_logger().info(
            "Starting air quality proxy",
            cache_backend=settings.cache_backend,
            cache_ttl_seconds=settings.cache_ttl_seconds,
        )
        yield
        await cache.close()

    app = FastAPI(
        title="Air Quality Proxy API",
        description="Cached REST API proxy for Open-Meteo air quality data",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache_service = cache
    app.state.air_quality_service = service

    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router)
    app.include_router(health_router)

    # Mount Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    return app


def run() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "air_quality_proxy.main:create_app",
        factory=True,
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()

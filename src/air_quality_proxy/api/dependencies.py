"""FastAPI dependencies.

Services are built once per application in ``create_app`` and kept on
``app.state``, so independent apps (and tests) never share instances.
"""

from typing import Annotated

from fastapi import Depends, Request

from air_quality_proxy.services.air_quality import AirQualityService
from air_quality_proxy.services.cache import CacheService


def get_cache_service(request: Request) -> CacheService:
    """Get the application's cache service."""
    cache: CacheService = request.app.state.cache_service
    return cache


def get_air_quality_service(request: Request) -> AirQualityService:
    """Get the application's air quality service."""
    service: AirQualityService = request.app.state.air_quality_service
    return service


# Type aliases for dependency injection
CacheDep = Annotated[CacheService, Depends(get_cache_service)]
AirQualityServiceDep = Annotated[AirQualityService, Depends(get_air_quality_service)]

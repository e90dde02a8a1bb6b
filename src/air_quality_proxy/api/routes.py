"""API route definitions."""

from typing import Annotated, Any, NoReturn

import structlog
from fastapi import APIRouter, HTTPException, Query, status

from air_quality_proxy.api.dependencies import AirQualityServiceDep, CacheDep
from air_quality_proxy.api.schemas import (
    AirQualityReading,
    AirQualityRequest,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ReadinessResponse,
)
from air_quality_proxy.services.air_quality import AirQualityFetchError
from air_quality_proxy.services.open_meteo import OpenMeteoAPIError, OpenMeteoTimeoutError

logger = structlog.get_logger()

# API router for air quality endpoints
api_router = APIRouter(prefix="/api/v1", tags=["air-quality"])

# Health router for health checks
health_router = APIRouter(prefix="/health", tags=["health"])

AIR_QUALITY_RESPONSES: dict[int | str, dict[str, Any]] = {
    502: {"model": ErrorResponse, "description": "Upstream API error"},
    504: {"model": ErrorResponse, "description": "Upstream timeout"},
}


def _raise_upstream_error(error: AirQualityFetchError) -> NoReturn:
    """Translate a failed fetch into an HTTP error, keyed on its cause."""
    cause = error.__cause__

    if isinstance(cause, OpenMeteoTimeoutError):
        status_code = status.HTTP_504_GATEWAY_TIMEOUT
        code = "UPSTREAM_TIMEOUT"
    else:
        status_code = status.HTTP_502_BAD_GATEWAY
        code = "UPSTREAM_ERROR"

    logger.error(
        "Upstream request failed",
        error=str(error),
        upstream_status=cause.status_code if isinstance(cause, OpenMeteoAPIError) else None,
    )
    raise HTTPException(
        status_code=status_code,
        detail=ErrorResponse(error=ErrorDetail(code=code, message=str(error))).model_dump(),
    ) from error


@api_router.get(
    "/air-quality",
    response_model=AirQualityReading,
    response_model_exclude_none=True,
    responses=AIR_QUALITY_RESPONSES,
)
async def get_air_quality(
    service: AirQualityServiceDep,
    latitude: Annotated[float, Query(ge=-90, le=90, description="Latitude")],
    longitude: Annotated[float, Query(ge=-180, le=180, description="Longitude")],
) -> AirQualityReading:
    """Get current air quality for coordinates.

    Returns US AQI, PM10 and PM2.5 for the specified location. Locations
    within about a kilometre share one cached reading.
    """
    try:
        return await service.get_air_quality(latitude, longitude)
    except AirQualityFetchError as e:
        _raise_upstream_error(e)


@api_router.post(
    "/air-quality",
    response_model=AirQualityReading,
    response_model_exclude_none=True,
    responses=AIR_QUALITY_RESPONSES,
)
async def query_air_quality(
    service: AirQualityServiceDep,
    body: AirQualityRequest,
) -> AirQualityReading:
    """Get current air quality for a location given in the request body."""
    try:
        return await service.get_air_quality(body.latitude, body.longitude)
    except AirQualityFetchError as e:
        _raise_upstream_error(e)


@health_router.get("/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness check - reports if the service is running."""
    return HealthResponse(status="ok")


@health_router.get("/ready", response_model=ReadinessResponse)
async def readiness(cache: CacheDep) -> ReadinessResponse:
    """Readiness check - reports if the service is ready to accept traffic."""
    cache_status = "ok" if await cache.is_healthy() else "unhealthy"

    overall_status = "ok" if cache_status == "ok" else "unhealthy"

    response = ReadinessResponse(
        status=overall_status,
        checks={"cache": cache_status},
    )

    if overall_status != "ok":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=response.model_dump(),
        )

    return response

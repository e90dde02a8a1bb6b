"""API request and response schemas."""

from pydantic import BaseModel, Field


class AirQualityRequest(BaseModel):
    """Location to look up."""

    latitude: float = Field(..., ge=-90, le=90, description="Latitude")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude")


class CurrentAirQuality(BaseModel):
    """Current air quality conditions."""

    time: str | None = Field(default=None, description="Observation time (ISO-8601)")
    usAqi: float | None = Field(default=None, description="US Air Quality Index")  # noqa: N815
    pm10: float | None = Field(default=None, description="PM10 in µg/m³")
    pm25: float | None = Field(default=None, description="PM2.5 in µg/m³")


class AirQualityReading(BaseModel):
    """Air quality reading for a location.

    Coordinates are the ones reported by Open-Meteo, which snaps requests
    to its own grid, not the ones that were requested.
    """

    latitude: float = Field(..., description="Latitude of the grid cell")
    longitude: float = Field(..., description="Longitude of the grid cell")
    current: CurrentAirQuality | None = Field(
        default=None, description="Current conditions, absent when unavailable"
    )


class ErrorDetail(BaseModel):
    """Error detail."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Error response."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str = Field(..., description="Readiness status")
    checks: dict[str, str] = Field(default_factory=dict, description="Component checks")

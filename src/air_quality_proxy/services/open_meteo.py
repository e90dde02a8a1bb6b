"""Open-Meteo air-quality API client."""

from typing import Any

import httpx
from prometheus_client import Counter, Histogram
from pydantic import BaseModel, ValidationError

from air_quality_proxy.api.schemas import AirQualityReading, CurrentAirQuality
from air_quality_proxy.config import Settings

# Requested variables, in the order Open-Meteo receives them
CURRENT_FIELDS = ("us_aqi", "pm10", "pm2_5")


class OpenMeteoError(Exception):
    """Base exception for Open-Meteo client errors."""


class OpenMeteoAPIError(OpenMeteoError):
    """Raised when upstream responds with a non-success status."""

    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(f"Open-Meteo API error: {status_code} {reason}")
        self.status_code = status_code
        self.reason = reason


class OpenMeteoTransportError(OpenMeteoError):
    """Raised when upstream cannot be reached."""


class OpenMeteoTimeoutError(OpenMeteoTransportError):
    """Raised when upstream request times out."""


class OpenMeteoDecodeError(OpenMeteoError):
    """Raised when the upstream body is not the expected JSON document."""


# Metrics
upstream_requests = Counter(
    "upstream_requests_total",
    "Total upstream API requests",
    ["status"],
)
upstream_duration = Histogram(
    "upstream_request_duration_seconds",
    "Upstream request duration in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 10.0],
)


class _UpstreamCurrent(BaseModel):
    time: str | None = None
    us_aqi: float | None = None
    pm10: float | None = None
    pm2_5: float | None = None


class _UpstreamResponse(BaseModel):
    latitude: float
    longitude: float
    current: _UpstreamCurrent | None = None


class OpenMeteoClient:
    """HTTP client for the Open-Meteo Air Quality API."""

    def __init__(self, settings: Settings) -> None:
        """Initialize client with settings."""
        self._base_url = settings.upstream_url
        self._timeout = settings.upstream_timeout_seconds

    async def fetch_current(self, latitude: float, longitude: float) -> AirQualityReading:
        """Fetch current air quality for coordinates.

        Makes exactly one request; the coordinates are sent as given,
        unrounded.

        Args:
            latitude: Latitude
            longitude: Longitude

        Returns:
            Reading with US AQI, PM10 and PM2.5 where upstream provides them

        Raises:
            OpenMeteoAPIError: If upstream returns a non-2xx status
            OpenMeteoTransportError: If upstream cannot be reached
            OpenMeteoDecodeError: If the body is not the expected JSON
        """
        params: dict[str, str] = {
            "latitude": str(latitude),
            "longitude": str(longitude),
            "current": ",".join(CURRENT_FIELDS),
        }

        with upstream_duration.time():
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, follow_redirects=True
                ) as client:
                    response = await client.get(self._base_url, params=params)

            except httpx.TimeoutException as e:
                upstream_requests.labels(status="timeout").inc()
                raise OpenMeteoTimeoutError(str(e)) from e

            except httpx.RequestError as e:
                upstream_requests.labels(status="error").inc()
                raise OpenMeteoTransportError(str(e)) from e

        if not response.is_success:
            upstream_requests.labels(status="error").inc()
            raise OpenMeteoAPIError(response.status_code, response.reason_phrase)

        try:
            reading = self._parse_response(response.json())
        except (ValueError, ValidationError) as e:
            upstream_requests.labels(status="invalid").inc()
            raise OpenMeteoDecodeError(str(e)) from e

        upstream_requests.labels(status="success").inc()
        return reading

    def _parse_response(self, data: Any) -> AirQualityReading:
        """Map an Open-Meteo body onto the reading shape.

        Raises:
            ValidationError: If the body lacks coordinates or has malformed values
        """
        upstream = _UpstreamResponse.model_validate(data)
        current = upstream.current

        return AirQualityReading(
            latitude=upstream.latitude,
            longitude=upstream.longitude,
            current=(
                CurrentAirQuality(
                    time=current.time,
                    usAqi=current.us_aqi,
                    pm10=current.pm10,
                    pm25=current.pm2_5,
                )
                if current is not None
                else None
            ),
        )

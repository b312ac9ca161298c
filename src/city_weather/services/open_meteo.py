"""Open-Meteo forecast and archive API client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from prometheus_client import Counter, Histogram

from city_weather.config import Settings

if TYPE_CHECKING:
    from city_weather.services.geocoding import Coordinates


class OpenMeteoError(Exception):
    """Base exception for Open-Meteo client errors."""


class OpenMeteoTimeoutError(OpenMeteoError):
    """Raised when upstream request times out."""


class OpenMeteoResponseError(OpenMeteoError):
    """Raised when upstream answers successfully with an unusable body."""


class OpenMeteoAPIError(OpenMeteoError):
    """Raised when upstream returns an error."""

    def __init__(self, message: str, status_code: int, details: dict[str, Any]) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


# Metrics
upstream_requests = Counter(
    "upstream_requests_total",
    "Total upstream API requests",
    ["upstream", "status"],
)
upstream_duration = Histogram(
    "upstream_request_duration_seconds",
    "Upstream request duration in seconds",
    ["upstream"],
    buckets=[0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0],
)

CURRENT_FIELDS = (
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "is_day",
    "precipitation",
    "weather_code",
    "wind_speed_10m",
)
FORECAST_HOURLY_FIELDS = ("temperature_2m", "weather_code", "precipitation_probability")
FORECAST_DAILY_FIELDS = (
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "sunrise",
    "sunset",
)
ARCHIVE_HOURLY_FIELDS = (
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "weather_code",
    "wind_speed_10m",
)

RAW_RESPONSE_LIMIT = 200


class OpenMeteoClient:
    """HTTP client for the Open-Meteo Forecast and Archive APIs."""

    def __init__(self, settings: Settings) -> None:
        """Initialize client with settings."""
        self._forecast_url = settings.forecast_url
        self._archive_url = settings.archive_url
        self._timeout = settings.upstream_timeout_seconds

    async def fetch(self, coords: Coordinates, date: str | None = None) -> dict[str, Any]:
        """Fetch weather data for a location.

        Without a date this returns current conditions with hourly and daily
        forecast series. With a date it returns the hourly archive for that
        single day.

        Args:
            coords: Resolved location
            date: Optional day in YYYY-MM-DD format, already validated

        Returns:
            Raw upstream JSON document

        Raises:
            OpenMeteoTimeoutError: If request times out
            OpenMeteoAPIError: If upstream returns an error
            OpenMeteoResponseError: If upstream body is not a JSON object
            OpenMeteoError: On any other transport failure
        """
        params: dict[str, str | float] = {
            "latitude": coords.latitude,
            "longitude": coords.longitude,
            "timezone": "auto",
        }

        if date is None:
            upstream = "forecast"
            url = self._forecast_url
            params["current"] = ",".join(CURRENT_FIELDS)
            params["hourly"] = ",".join(FORECAST_HOURLY_FIELDS)
            params["daily"] = ",".join(FORECAST_DAILY_FIELDS)
        else:
            upstream = "archive"
            url = self._archive_url
            params["start_date"] = date
            params["end_date"] = date
            params["hourly"] = ",".join(ARCHIVE_HOURLY_FIELDS)

        with upstream_duration.labels(upstream=upstream).time():
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, params=params)

            except httpx.TimeoutException as e:
                upstream_requests.labels(upstream=upstream, status="timeout").inc()
                raise OpenMeteoTimeoutError(
                    f"Open-Meteo {upstream} request timed out after {self._timeout}s"
                ) from e

            except httpx.RequestError as e:
                upstream_requests.labels(upstream=upstream, status="error").inc()
                raise OpenMeteoError(f"Open-Meteo {upstream} request failed: {e}") from e

        if not response.is_success:
            upstream_requests.labels(upstream=upstream, status="error").inc()
            raise OpenMeteoAPIError(
                f"Open-Meteo {upstream} API returned {response.status_code}",
                response.status_code,
                _error_details(response),
            )

        upstream_requests.labels(upstream=upstream, status="success").inc()

        try:
            data = response.json()
        except ValueError as e:
            raise OpenMeteoResponseError(
                f"Open-Meteo {upstream} API returned invalid JSON"
            ) from e

        if not isinstance(data, dict):
            raise OpenMeteoResponseError(
                f"Open-Meteo {upstream} API returned {type(data).__name__}, expected object"
            )

        return data


def _error_details(response: httpx.Response) -> dict[str, Any]:
    """Collect diagnostics from an upstream error response.

    Prefers the JSON body; falls back to a truncated copy of the raw text.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        return body

    return {
        "message": f"Open-Meteo API request failed with status {response.status_code}",
        "rawResponse": response.text[:RAW_RESPONSE_LIMIT],
    }

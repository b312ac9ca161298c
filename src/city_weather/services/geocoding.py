"""Open-Meteo geocoding client."""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from city_weather.config import Settings
from city_weather.services.open_meteo import upstream_duration, upstream_requests

logger = structlog.get_logger()


@dataclass(frozen=True)
class Coordinates:
    """Geocoded location of a city."""

    latitude: float
    longitude: float
    resolved_name: str
    country: str | None = None


class GeocodingClient:
    """Resolve free-text city names to coordinates.

    Every failure is reported as "not found": callers only ever see
    ``Coordinates`` or ``None``.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize client with settings."""
        self._url = settings.geocoding_url
        self._timeout = settings.upstream_timeout_seconds

    async def resolve(self, city: str) -> Coordinates | None:
        """Look up the single best match for a city name.

        Args:
            city: City name as typed by the user

        Returns:
            Coordinates of the first match, or None if nothing usable came back
        """
        params: dict[str, str | int] = {
            "name": city,
            "count": 1,
            "language": "en",
            "format": "json",
        }

        with upstream_duration.labels(upstream="geocoding").time():
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self._url, params=params)
            except httpx.RequestError as e:
                upstream_requests.labels(upstream="geocoding", status="error").inc()
                logger.error("Geocoding request failed", city=city, error=str(e))
                return None

        if not response.is_success:
            upstream_requests.labels(upstream="geocoding", status="error").inc()
            logger.error(
                "Geocoding API returned an error",
                city=city,
                status_code=response.status_code,
                reason=_error_reason(response),
            )
            return None

        upstream_requests.labels(upstream="geocoding", status="success").inc()

        try:
            data = response.json()
        except ValueError:
            logger.error("Geocoding API returned invalid JSON", city=city)
            return None

        return self._parse_first_result(city, data)

    def _parse_first_result(self, city: str, data: Any) -> Coordinates | None:
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            logger.info("No geocoding results", city=city)
            return None

        first = results[0]
        try:
            latitude = float(first["latitude"])
            longitude = float(first["longitude"])
        except (KeyError, TypeError, ValueError):
            logger.error("Geocoding result missing coordinates", city=city)
            return None

        return Coordinates(
            latitude=latitude,
            longitude=longitude,
            resolved_name=first.get("name") or city,
            country=first.get("country"),
        )


def _error_reason(response: httpx.Response) -> str | None:
    """Best-effort extraction of the ``reason`` field from an error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("reason")
    return None

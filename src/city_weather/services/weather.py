"""Weather service orchestrating geocoding, upstream fetch and history."""

import structlog

from city_weather.services.composer import WeatherEnvelope, compose
from city_weather.services.geocoding import GeocodingClient
from city_weather.services.history import HistoryStore
from city_weather.services.open_meteo import OpenMeteoClient
from city_weather.services.query import WeatherQuery

logger = structlog.get_logger()


class CityNotFoundError(Exception):
    """Raised when a city name cannot be geocoded."""

    def __init__(self, city: str) -> None:
        super().__init__(f"Could not find coordinates for city: {city}")
        self.city = city


class WeatherService:
    """Service answering weather lookups by city name."""

    def __init__(
        self,
        geocoder: GeocodingClient,
        client: OpenMeteoClient,
        history: HistoryStore,
    ) -> None:
        """Initialize service with its collaborators."""
        self._geocoder = geocoder
        self._client = client
        self._history = history

    async def get_weather(self, query: WeatherQuery) -> WeatherEnvelope:
        """Get current or historical weather for a validated query.

        The search is recorded in the history store in the background;
        the response never waits for that write.

        Args:
            query: Validated weather query

        Returns:
            Upstream document with lookup metadata attached

        Raises:
            CityNotFoundError: If the city cannot be geocoded
            OpenMeteoError: If the weather provider call fails
        """
        coords = await self._geocoder.resolve(query.city)
        if coords is None:
            raise CityNotFoundError(query.requested_city)

        logger.info(
            "Fetching weather",
            city=coords.resolved_name,
            lat=coords.latitude,
            lon=coords.longitude,
            historical=query.is_historical,
        )

        payload = await self._client.fetch(coords, query.date)
        envelope = compose(payload, query, coords)

        self._history.record_in_background(coords.resolved_name, query.date, query.time)

        return envelope

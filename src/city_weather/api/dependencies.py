"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from city_weather.config import Settings, get_settings
from city_weather.services.geocoding import GeocodingClient
from city_weather.services.history import HistoryStore
from city_weather.services.open_meteo import OpenMeteoClient
from city_weather.services.weather import WeatherService

# Singleton instances for upstream clients
_geocoding_client: GeocodingClient | None = None
_open_meteo_client: OpenMeteoClient | None = None


def get_geocoding_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> GeocodingClient:
    """Get geocoding client instance (singleton)."""
    global _geocoding_client
    if _geocoding_client is None:
        _geocoding_client = GeocodingClient(settings)
    return _geocoding_client


def get_open_meteo_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> OpenMeteoClient:
    """Get Open-Meteo client instance (singleton)."""
    global _open_meteo_client
    if _open_meteo_client is None:
        _open_meteo_client = OpenMeteoClient(settings)
    return _open_meteo_client


def get_history_store(request: Request) -> HistoryStore:
    """Get the history store owned by the application."""
    store: HistoryStore = request.app.state.history_store
    return store


def get_weather_service(
    geocoder: Annotated[GeocodingClient, Depends(get_geocoding_client)],
    client: Annotated[OpenMeteoClient, Depends(get_open_meteo_client)],
    history: Annotated[HistoryStore, Depends(get_history_store)],
) -> WeatherService:
    """Get weather service instance."""
    return WeatherService(geocoder, client, history)


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
HistoryStoreDep = Annotated[HistoryStore, Depends(get_history_store)]
WeatherServiceDep = Annotated[WeatherService, Depends(get_weather_service)]


def reset_singletons() -> None:
    """Reset singleton instances (for testing)."""
    global _geocoding_client, _open_meteo_client
    _geocoding_client = None
    _open_meteo_client = None

"""Test fixtures."""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from city_weather.api.dependencies import reset_singletons
from city_weather.config import Settings, get_settings
from city_weather.main import create_app
from city_weather.services.geocoding import Coordinates, GeocodingClient
from city_weather.services.history import HistoryStore
from city_weather.services.open_meteo import OpenMeteoClient

ARCHIVE_DATE = "2024-01-01"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create test settings."""
    return Settings(
        upstream_timeout_seconds=1.0,
        history_db_path=str(tmp_path / "history.db"),
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def geocoding_client(settings: Settings) -> GeocodingClient:
    """Create test geocoding client."""
    return GeocodingClient(settings)


@pytest.fixture
def open_meteo_client(settings: Settings) -> OpenMeteoClient:
    """Create test Open-Meteo client."""
    return OpenMeteoClient(settings)


@pytest.fixture
def history_store(settings: Settings) -> HistoryStore:
    """Create an uninitialized history store on a temporary database."""
    return HistoryStore(settings)


@pytest.fixture
def berlin() -> Coordinates:
    """Resolved coordinates for Berlin."""
    return Coordinates(latitude=52.52, longitude=13.41, resolved_name="Berlin", country="Germany")


@pytest.fixture
def geocoding_payload() -> dict[str, Any]:
    """Geocoding API answer with a single match."""
    return {
        "results": [
            {
                "id": 2950159,
                "name": "Berlin",
                "latitude": 52.52437,
                "longitude": 13.41053,
                "country": "Germany",
                "admin1": "Land Berlin",
            }
        ],
        "generationtime_ms": 0.9,
    }


@pytest.fixture
def forecast_payload() -> dict[str, Any]:
    """Forecast API answer with current conditions."""
    return {
        "latitude": 52.52,
        "longitude": 13.419998,
        "timezone": "Europe/Berlin",
        "current": {
            "time": "2024-06-01T12:00",
            "temperature_2m": 21.4,
            "relative_humidity_2m": 55,
            "apparent_temperature": 20.9,
            "is_day": 1,
            "precipitation": 0.0,
            "weather_code": 2,
            "wind_speed_10m": 11.2,
        },
        "hourly": {
            "time": ["2024-06-01T00:00", "2024-06-01T01:00"],
            "temperature_2m": [15.1, 14.6],
            "weather_code": [1, 1],
            "precipitation_probability": [0, 5],
        },
        "daily": {
            "time": ["2024-06-01"],
            "weather_code": [2],
            "temperature_2m_max": [23.0],
            "temperature_2m_min": [12.8],
            "sunrise": ["2024-06-01T04:46"],
            "sunset": ["2024-06-01T21:22"],
        },
    }


@pytest.fixture
def archive_payload() -> dict[str, Any]:
    """Archive API answer covering every hour of one day."""
    hours = range(24)
    return {
        "latitude": 48.86,
        "longitude": 2.35,
        "timezone": "Europe/Paris",
        "hourly_units": {"time": "iso8601", "temperature_2m": "°C"},
        "hourly": {
            "time": [f"{ARCHIVE_DATE}T{hour:02d}:00" for hour in hours],
            "temperature_2m": [5.0 + hour / 10 for hour in hours],
            "relative_humidity_2m": [80 + hour % 5 for hour in hours],
            "apparent_temperature": [2.0 + hour / 10 for hour in hours],
            "precipitation": [0.1 * (hour % 3) for hour in hours],
            "weather_code": [3 for _ in hours],
            "wind_speed_10m": [10.0 + hour for hour in hours],
        },
    }


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Create test application."""
    # Reset singletons before each test
    reset_singletons()
    # Clear settings cache
    get_settings.cache_clear()
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Create test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client

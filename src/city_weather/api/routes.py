"""API route definitions."""

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import HTMLResponse, JSONResponse

from city_weather.api.dependencies import HistoryStoreDep, WeatherServiceDep
from city_weather.api.schemas import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ReadinessResponse,
    SearchHistoryEntry,
)
from city_weather.services.history import HistoryStorageError
from city_weather.services.open_meteo import (
    OpenMeteoAPIError,
    OpenMeteoError,
    OpenMeteoResponseError,
    OpenMeteoTimeoutError,
)
from city_weather.services.query import InvalidQueryError, parse_query
from city_weather.services.weather import CityNotFoundError

logger = structlog.get_logger()

# Root router for landing page
root_router = APIRouter(tags=["root"])

# API router for weather and history endpoints
api_router = APIRouter(prefix="/api", tags=["weather"])

# Health router for health checks
health_router = APIRouter(prefix="/health", tags=["health"])


LANDING_PAGE_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>City Weather</title>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            max-width: 640px;
            margin: 3rem auto;
            padding: 0 1rem;
            color: #222;
        }
        code { background: #f2f2f2; padding: 0.1rem 0.3rem; border-radius: 3px; }
        li { margin: 0.5rem 0; }
    </style>
</head>
<body>
    <h1>City Weather</h1>
    <p>Current and historical weather by city name, powered by Open-Meteo.</p>
    <ul>
        <li><code>GET /api/weather?city=Berlin</code> current conditions and forecast</li>
        <li><code>GET /api/weather?city=Paris&amp;date=2024-01-01&amp;time=14:00</code>
            one historical hour</li>
        <li><code>GET /api/history</code> the last searches</li>
    </ul>
    <p><a href="/docs">API Docs</a></p>
</body>
</html>
"""


def _error(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=ErrorResponse(
            error=ErrorDetail(code=code, message=message, details=details)
        ).model_dump(exclude_none=True),
    )


@root_router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def landing_page() -> str:
    """Landing page with API information."""
    return LANDING_PAGE_HTML


@api_router.get(
    "/weather",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid city, date or time"},
        404: {"model": ErrorResponse, "description": "City not found"},
        500: {"model": ErrorResponse, "description": "Internal or transport failure"},
        502: {"model": ErrorResponse, "description": "Upstream API error"},
    },
)
async def get_weather(
    weather_service: WeatherServiceDep,
    city: Annotated[str | None, Query(description="City name")] = None,
    date: Annotated[str | None, Query(description="Historical day, YYYY-MM-DD")] = None,
    time: Annotated[str | None, Query(description="Hour of that day, HH or HH:MM")] = None,
) -> JSONResponse:
    """Get current weather, or historical weather for one day or hour.

    Without ``date`` the response carries current conditions plus hourly and
    daily forecasts. With ``date`` it carries that day's hourly archive, and
    with ``time`` as well the matching hour is extracted into
    ``specific_time_data``.
    """
    try:
        query = parse_query(city, date, time)
    except InvalidQueryError as e:
        logger.info("Rejected weather query", city=city, date=date, time=time, reason=str(e))
        raise _error(status.HTTP_400_BAD_REQUEST, "INVALID_QUERY", str(e)) from e

    try:
        envelope = await weather_service.get_weather(query)

    except CityNotFoundError as e:
        logger.info("City not found", city=query.city)
        raise _error(status.HTTP_404_NOT_FOUND, "CITY_NOT_FOUND", str(e)) from e

    except OpenMeteoAPIError as e:
        logger.error(
            "Upstream API error",
            city=query.city,
            status_code=e.status_code,
            details=e.details,
        )
        raise _error(
            status.HTTP_502_BAD_GATEWAY,
            "UPSTREAM_ERROR",
            "Failed to fetch weather data from Open-Meteo.",
            {"upstreamStatus": e.status_code, **e.details},
        ) from e

    except OpenMeteoResponseError as e:
        logger.error("Upstream returned invalid response", city=query.city, error=str(e))
        raise _error(
            status.HTTP_502_BAD_GATEWAY,
            "UPSTREAM_INVALID_RESPONSE",
            "Open-Meteo returned an unreadable response.",
        ) from e

    except OpenMeteoTimeoutError as e:
        logger.error("Upstream timeout", city=query.city, error=str(e))
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "UPSTREAM_TIMEOUT",
            "Open-Meteo API request timed out",
        ) from e

    except OpenMeteoError as e:
        logger.error("Upstream request failed", city=query.city, error=str(e))
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "UPSTREAM_UNREACHABLE",
            "Open-Meteo API could not be reached",
        ) from e

    except Exception as e:
        logger.exception("Unexpected error processing weather request", city=query.city)
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "Internal server error",
        ) from e

    return JSONResponse(envelope.to_dict())


@api_router.get(
    "/history",
    response_model=list[SearchHistoryEntry],
    responses={
        500: {"model": ErrorResponse, "description": "History store unavailable"},
    },
)
async def get_history(history: HistoryStoreDep) -> list[SearchHistoryEntry]:
    """Get the most recent searches, newest first."""
    try:
        return await history.recent()
    except HistoryStorageError as e:
        logger.error("Failed to fetch search history", error=str(e))
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "HISTORY_UNAVAILABLE",
            "Failed to fetch search history",
        ) from e


@health_router.get("/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe - checks if the service is running."""
    return HealthResponse(status="ok")


@health_router.get("/ready", response_model=ReadinessResponse)
async def readiness(history: HistoryStoreDep) -> ReadinessResponse:
    """Readiness probe - checks if the history store is usable."""
    history_status = "ok" if await history.is_healthy() else "unhealthy"

    overall_status = "ok" if history_status == "ok" else "unhealthy"

    response = ReadinessResponse(
        status=overall_status,
        checks={"history": history_status},
    )

    if overall_status != "ok":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=response.model_dump(),
        )

    return response

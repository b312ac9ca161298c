"""Request logging, lookup context and HTTP metrics."""

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

import structlog
from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from city_weather.config import Settings

REQUEST_ID_HEADER = "X-Request-ID"
API_PREFIX = "/api/"
WEATHER_PATH = "/api/weather"

# Query parameters worth carrying on every log line of a lookup
LOOKUP_PARAMS = ("city", "date", "time")
MAX_CONTEXT_VALUE = 100

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Metrics
http_requests = Counter(
    "http_requests_total",
    "Total HTTP requests by route template and outcome",
    ["method", "route", "outcome"],
)
http_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
weather_lookups = Counter(
    "weather_lookups_total",
    "Weather lookups by response status",
    ["status"],
)


def configure_logging(settings: Settings) -> None:
    """Configure structlog based on settings.

    ``log_format="json"`` renders one JSON object per line with structured
    tracebacks; anything else uses the colored console renderer.
    """
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if settings.log_format == "json":
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def lookup_context(request: Request) -> dict[str, str]:
    """City, date and time of an API request, for binding to its log lines.

    Values are truncated so a hostile query string cannot flood the logs.
    """
    if not request.url.path.startswith(API_PREFIX):
        return {}
    return {
        name: request.query_params[name][:MAX_CONTEXT_VALUE]
        for name in LOOKUP_PARAMS
        if name in request.query_params
    }


def route_label(request: Request) -> str:
    """Route template the request matched, or ``unmatched``.

    Keeps metric label cardinality bounded regardless of requested paths.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def outcome(status_code: int) -> str:
    if status_code >= 500:
        return "server_error"
    if status_code >= 400:
        return "client_error"
    return "ok"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind request and lookup context to logs, record metrics.

    An incoming ``X-Request-ID`` header is reused so a lookup can be traced
    from the browser to the server logs. Client errors such as rejected
    queries or unknown cities are logged at info; only 5xx are warnings.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request with logging and metrics."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request_id_var.set(request_id)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            **lookup_context(request),
        )
        logger = structlog.get_logger()
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "Request failed with exception",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            http_requests.labels(
                method=request.method, route=route_label(request), outcome="server_error"
            ).inc()
            raise

        duration = time.perf_counter() - started
        route = route_label(request)
        result = outcome(response.status_code)

        http_requests.labels(method=request.method, route=route, outcome=result).inc()
        http_duration.labels(method=request.method, route=route).observe(duration)
        if route == WEATHER_PATH:
            weather_lookups.labels(status=str(response.status_code)).inc()

        fields = {"status_code": response.status_code, "duration_ms": round(duration * 1000, 2)}
        if result == "server_error":
            logger.warning("Request failed", **fields)
        elif result == "client_error":
            logger.info("Request rejected", **fields)
        else:
            logger.info("Request completed", **fields)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

"""Application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from city_weather import __version__
from city_weather.api.routes import api_router, health_router, root_router
from city_weather.config import Settings, get_settings
from city_weather.middleware.logging import LoggingMiddleware, configure_logging
from city_weather.services.history import HistoryStore

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the history store on startup, flush and close it on shutdown."""
    store: HistoryStore = app.state.history_store
    await store.initialize()
    try:
        yield
    finally:
        await store.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    # Configure logging
    configure_logging(settings)

    # Create FastAPI app
    app = FastAPI(
        title="City Weather API",
        description="Current and historical weather by city name, with search history",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.history_store = HistoryStore(settings)
    app.dependency_overrides[get_settings] = lambda: settings

    # Add middleware
    app.add_middleware(LoggingMiddleware)

    # Include routers
    app.include_router(root_router)
    app.include_router(api_router)
    app.include_router(health_router)

    # Mount Prometheus metrics endpoint
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    return app


# Create app instance for ASGI servers
app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    logger.info("Starting server", host=settings.app_host, port=settings.app_port)
    uvicorn.run(
        "city_weather.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()

"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import install_error_handlers
from api.logging import request_logging_middleware
from api.rate_limit import RateLimiter, rate_limit_middleware
from api.routes import (
    archive_router,
    calendar_router,
    health_router,
    realtime_router,
    weather_router,
)
from core.config import (
    API_KEYS,
    API_VERSION,
    APP_ENV,
    CORS_ORIGINS,
    EVENT_KEY_STRATEGY,
    LOG_FORMAT,
    LOG_LEVEL,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_MAX,
    RATE_LIMIT_WINDOW_SECONDS,
    check_required_env,
)
from core.event_store import EventStore, get_key_strategy
from core.logging import configure_logging
from core.storage import ObjectStorage
from services.archive import ArchiveService
from services.calendar import CalendarService
from services.realtime import RealtimeService
from services.weather import WeatherService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup: fail fast on missing configuration
    configure_logging(LOG_LEVEL, LOG_FORMAT)
    check_required_env()
    logger.info(
        "Server starting",
        extra={
            "environment": app.state.environment,
            "key_strategy": app.state.event_store.strategy.name,
        },
    )

    yield

    logger.info("Server stopped", extra={"stored_events": len(app.state.event_store)})


def create_app(
    *,
    event_store: EventStore | None = None,
    calendar: CalendarService | None = None,
    realtime: RealtimeService | None = None,
    weather: WeatherService | None = None,
    archive: ArchiveService | None = None,
    api_keys: list[str] | None = None,
    environment: str = APP_ENV,
    cors_origins: list[str] | None = None,
    enable_rate_limit: bool = RATE_LIMIT_ENABLED,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """
    Build the application with its collaborators.

    Every collaborator defaults to the configured production implementation;
    tests pass fakes instead.
    """
    app = FastAPI(
        title="Voice Agent Backend",
        description=(
            "Calendar, realtime-session, weather and archival API for the voice agent client"
        ),
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.state.environment = environment
    app.state.production = environment == "production"
    app.state.api_keys = list(API_KEYS if api_keys is None else api_keys)
    if event_store is None:
        event_store = EventStore(get_key_strategy(EVENT_KEY_STRATEGY))
    if enable_rate_limit and rate_limiter is None:
        rate_limiter = RateLimiter(RATE_LIMIT_MAX, RATE_LIMIT_WINDOW_SECONDS)

    app.state.event_store = event_store
    app.state.calendar = calendar if calendar is not None else CalendarService()
    app.state.realtime = realtime if realtime is not None else RealtimeService()
    app.state.weather = weather if weather is not None else WeatherService()
    app.state.archive = archive if archive is not None else ArchiveService(ObjectStorage())
    app.state.rate_limiter = rate_limiter if enable_rate_limit else None

    install_error_handlers(app)

    # Added innermost first: CORS wraps logging wraps rate limiting
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_logging_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS if cors_origins is None else cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(realtime_router)
    app.include_router(calendar_router)
    app.include_router(weather_router)
    app.include_router(archive_router)

    return app


app = create_app()


# Entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT, IS_DEVELOPMENT

    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=IS_DEVELOPMENT,
        log_config=None,
    )

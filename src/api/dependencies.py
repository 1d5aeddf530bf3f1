"""FastAPI dependencies for authentication and shared resources."""

import logging
import secrets

from fastapi import Header, Request

from core.errors import ApiError, ErrorCodes
from core.event_store import EventStore
from services.archive import ArchiveService
from services.calendar import CalendarService
from services.realtime import RealtimeService
from services.weather import WeatherService

logger = logging.getLogger(__name__)

FORBIDDEN_MESSAGE = "Forbidden: Invalid API Key"


def is_allowed_key(candidate: str | None, allowed: list[str]) -> bool:
    """Constant-time membership test against the configured allow-list."""
    if not candidate:
        return False
    matched = False
    for key in allowed:
        # Check every key so timing does not reveal which one matched
        if secrets.compare_digest(candidate.encode(), key.encode()):
            matched = True
    return matched


async def verify_api_key(
    request: Request,
    x_api_key: str | None = Header(None, alias="X-API-Key"),
) -> str:
    """
    Verify the API key from the X-API-Key header.

    Raises:
        ApiError: 403 if the key is missing or not in the allow-list
    """
    if not is_allowed_key(x_api_key, request.app.state.api_keys):
        logger.warning("Rejected request with invalid API key", extra={"path": request.url.path})
        raise ApiError(FORBIDDEN_MESSAGE, 403, code=ErrorCodes.FORBIDDEN)
    return x_api_key


def get_event_store(request: Request) -> EventStore:
    return request.app.state.event_store


def get_calendar_service(request: Request) -> CalendarService:
    return request.app.state.calendar


def get_realtime_service(request: Request) -> RealtimeService:
    return request.app.state.realtime


def get_weather_service(request: Request) -> WeatherService:
    return request.app.state.weather


def get_archive_service(request: Request) -> ArchiveService:
    return request.app.state.archive

"""API route modules."""

from .archive import router as archive_router
from .calendar import router as calendar_router
from .health import router as health_router
from .realtime import router as realtime_router
from .weather import router as weather_router

__all__ = [
    "archive_router",
    "calendar_router",
    "health_router",
    "realtime_router",
    "weather_router",
]

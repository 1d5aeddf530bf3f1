"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_event_store
from api.models.responses import HealthResponse
from core.config import API_VERSION
from core.event_store import EventStore

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, store: EventStore = Depends(get_event_store)):
    """
    Health check endpoint for monitoring.

    Reports the running environment and how many reservations are cached.
    """
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        environment=request.app.state.environment,
        key_strategy=store.strategy.name,
        stored_events=len(store),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )

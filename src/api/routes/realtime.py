"""Realtime voice session bootstrap endpoints."""

from fastapi import APIRouter, Depends

from api.dependencies import get_realtime_service, verify_api_key
from api.models.responses import EphemeralKeyResponse
from services.realtime import RealtimeService

router = APIRouter(tags=["realtime"], dependencies=[Depends(verify_api_key)])


@router.get("/session")
async def create_session(realtime: RealtimeService = Depends(get_realtime_service)) -> dict:
    """Create a realtime session and return the provider payload as-is."""
    return await realtime.create_session()


@router.get("/getEKey", response_model=EphemeralKeyResponse)
async def get_ephemeral_key(realtime: RealtimeService = Depends(get_realtime_service)):
    """Return only the session's ephemeral client key."""
    return EphemeralKeyResponse(ephemeralKey=await realtime.get_ephemeral_key())

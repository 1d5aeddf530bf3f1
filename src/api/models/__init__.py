"""API Pydantic models."""

from .requests import (
    AudioPayload,
    AudioTranscriptRequest,
    EventOwner,
    ReservationFields,
    TranscriptRequest,
)
from .responses import (
    ArchiveFiles,
    ArchiveResponse,
    DeleteEventResponse,
    EphemeralKeyResponse,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ArchiveFiles",
    "ArchiveResponse",
    "AudioPayload",
    "AudioTranscriptRequest",
    "DeleteEventResponse",
    "EphemeralKeyResponse",
    "ErrorCodes",
    "ErrorResponse",
    "EventOwner",
    "HealthResponse",
    "ReservationFields",
    "TranscriptRequest",
]

"""Pydantic response models for API endpoints."""

from typing import Any

from pydantic import BaseModel

from core.errors import ErrorCodes  # noqa: F401  re-exported


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy"
    version: str
    environment: str
    key_strategy: str
    stored_events: int
    timestamp: str  # ISO 8601 UTC


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    data: dict[str, Any] | None = None
    stack: str | None = None  # development only


class DeleteEventResponse(BaseModel):
    """Calendar deletion confirmation."""

    success: bool
    eventId: str


class EphemeralKeyResponse(BaseModel):
    ephemeralKey: str


class ArchiveFiles(BaseModel):
    audio: str | None = None
    transcript: str | None = None
    metadata: str | None = None
    functionCalls: str | None = None


class ArchiveResponse(BaseModel):
    """Result of saving session artifacts to object storage."""

    success: bool
    sessionId: int
    sessionFolder: str
    s3Bucket: str
    s3Prefix: str
    files: ArchiveFiles


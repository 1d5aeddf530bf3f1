"""Pydantic request models for API endpoints.

Fields are optional at the schema level so that missing-field checks happen
in the controllers and report every absent field in one 400 response.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class ReservationFields(BaseModel):
    """Reservation fields as sent by the voice-agent client."""

    model_config = ConfigDict(extra="ignore")

    date: str | None = None
    time: str | None = None
    partySize: int | None = None
    email: str | None = None
    restaurantName: str | None = None
    restaurantAddress: str | None = None
    name: str | None = None
    userId: str | None = None

    def provided(self) -> dict[str, Any]:
        """Fields the client actually sent, excluding userId."""
        return self.model_dump(exclude_none=True, exclude={"userId"})


class EventOwner(BaseModel):
    """Optional body of a delete request."""

    model_config = ConfigDict(extra="ignore")

    userId: str | None = None


class AudioPayload(BaseModel):
    data: str | None = None  # base64
    mimeType: str | None = None


class AudioTranscriptRequest(BaseModel):
    audio: AudioPayload | None = None
    metadata: dict[str, Any] | None = None
    functionCalls: Any = None


class TranscriptRequest(BaseModel):
    transcript: list[Any] | dict[str, Any] | str | None = None
    format: str | None = None  # "json" or "text"
    metadata: dict[str, Any] | None = None

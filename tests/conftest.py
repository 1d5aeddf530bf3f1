"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from pathlib import Path

import httpx
import pytest

# Test environment must be set before any project module reads it
os.environ["APP_ENV"] = "test"
os.environ["API_KEYS"] = "test-key,other-key"
os.environ["OPENAI_API_KEY"] = "sk-test"

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from api.main import create_app  # noqa: E402
from core.errors import ProviderError, ValidationError  # noqa: E402
from core.event_store import BY_NAME, EventStore  # noqa: E402

API_KEY = "test-key"


class FakeCalendar:
    """In-memory stand-in for CalendarService that records its calls."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.error: Exception | None = None
        self._next_id = 0

    async def create_event(self, fields: dict) -> dict:
        self.calls.append(("create", dict(fields)))
        if self.error:
            raise self.error
        self._next_id += 1
        return {"id": f"evt{self._next_id}", "subject": f"Reservation for {fields['name']}"}

    async def update_event(self, event_id: str, fields: dict) -> dict:
        self.calls.append(("update", event_id, dict(fields)))
        if self.error:
            raise self.error
        return {"id": event_id, "subject": f"Reservation for {fields['name']}"}

    async def delete_event(self, event_id: str) -> dict:
        self.calls.append(("delete", event_id))
        if self.error:
            raise self.error
        return {"success": True, "eventId": event_id}


class FakeRealtime:
    def __init__(self, session: dict | None = None, error: Exception | None = None):
        self.session = session or {"id": "sess_1", "client_secret": {"value": "ek_123"}}
        self.error = error

    async def create_session(self) -> dict:
        if self.error:
            raise self.error
        return self.session

    async def get_ephemeral_key(self) -> str:
        if self.error:
            raise self.error
        return self.session["client_secret"]["value"]


class FakeWeather:
    def __init__(self):
        self.zip_codes: list = []

    async def get_forecast(self, zip_code):
        self.zip_codes.append(zip_code)
        if not isinstance(zip_code, str) or not zip_code.strip():
            raise ValidationError("A valid zip code string is required.")
        return {"location": {"name": "Brooklyn"}, "forecast": {"forecastday": []}}


class FakeArchive:
    def __init__(self):
        self.saved: list[tuple] = []

    async def save_audio_transcript(self, audio, metadata=None, function_calls=None) -> dict:
        self.saved.append(("audio", audio, metadata, function_calls))
        return {
            "success": True,
            "sessionId": 1,
            "sessionFolder": "session_1",
            "s3Bucket": "bucket",
            "s3Prefix": "transcripts/session_1/",
            "files": {"audio": "https://bucket/audio.wav"},
        }

    async def save_transcript(self, transcript, fmt=None, metadata=None) -> dict:
        self.saved.append(("transcript", transcript, fmt, metadata))
        return {
            "success": True,
            "sessionId": 2,
            "sessionFolder": "session_2",
            "s3Bucket": "bucket",
            "s3Prefix": "transcripts/session_2/",
            "files": {"transcript": "https://bucket/transcript.json"},
        }


@pytest.fixture
def sample_reservation():
    """Complete reservation request body."""
    return {
        "date": "2025-06-01",
        "time": "19:00",
        "partySize": 4,
        "email": "guest@example.com",
        "restaurantName": "Miti Miti",
        "restaurantAddress": "138 5th Avenue, Brooklyn, NY",
        "name": "Ada Lovelace",
    }


@pytest.fixture
def event_store():
    return EventStore(BY_NAME)


@pytest.fixture
def fake_calendar():
    return FakeCalendar()


@pytest.fixture
def fake_realtime():
    return FakeRealtime()


@pytest.fixture
def fake_weather():
    return FakeWeather()


@pytest.fixture
def fake_archive():
    return FakeArchive()


@pytest.fixture
def app(event_store, fake_calendar, fake_realtime, fake_weather, fake_archive):
    return create_app(
        event_store=event_store,
        calendar=fake_calendar,
        realtime=fake_realtime,
        weather=fake_weather,
        archive=fake_archive,
        api_keys=["test-key", "other-key"],
        environment="test",
        enable_rate_limit=False,
    )


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


def provider_failure(status_code: int = 502) -> ProviderError:
    return ProviderError("Failed to create calendar event: upstream exploded", status_code)

"""Tests for the realtime-session and weather provider clients.

Outbound HTTP is served by httpx.MockTransport, so no network is used.
"""

import json

import httpx
import pytest

from core.errors import ProviderError, ProviderUnavailableError, ValidationError
from services.prompts import get_agent_instructions
from services.realtime import RealtimeService
from services.weather import WeatherService

pytestmark = pytest.mark.unit

OPENAI_URL = "https://api.openai.test/v1"
WEATHER_URL = "https://weather.test/v1"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestRealtimeService:
    async def test_create_session_posts_configuration(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"id": "sess_1", "client_secret": {"value": "ek_123"}}
            )

        async with _client(handler) as http:
            service = RealtimeService(
                api_key="sk-test", base_url=OPENAI_URL, model="gpt-realtime", voice="ash",
                http_client=http,
            )
            session = await service.create_session()

        assert session == {"id": "sess_1", "client_secret": {"value": "ek_123"}}
        assert seen["url"] == f"{OPENAI_URL}/realtime/sessions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-realtime"
        assert seen["body"]["voice"] == "ash"
        assert seen["body"]["instructions"] == get_agent_instructions()

    async def test_custom_instructions(self):
        service = RealtimeService(api_key="sk-test", instructions="Be brief.")

        assert service.session_request()["instructions"] == "Be brief."

    async def test_provider_error_mirrors_status(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "Incorrect API key"}})

        async with _client(handler) as http:
            service = RealtimeService(api_key="bad", base_url=OPENAI_URL, http_client=http)
            with pytest.raises(ProviderError) as exc_info:
                await service.create_session()

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "OpenAI API Error: 401 Unauthorized"

    async def test_unreachable_provider(self):
        async with _client(_unreachable) as http:
            service = RealtimeService(api_key="sk-test", base_url=OPENAI_URL, http_client=http)
            with pytest.raises(ProviderUnavailableError):
                await service.create_session()

    async def test_get_ephemeral_key(self):
        def handler(request):
            return httpx.Response(200, json={"client_secret": {"value": "ek_456"}})

        async with _client(handler) as http:
            service = RealtimeService(api_key="sk-test", base_url=OPENAI_URL, http_client=http)
            assert await service.get_ephemeral_key() == "ek_456"

    async def test_missing_ephemeral_key(self):
        def handler(request):
            return httpx.Response(200, json={"id": "sess_1"})

        async with _client(handler) as http:
            service = RealtimeService(api_key="sk-test", base_url=OPENAI_URL, http_client=http)
            with pytest.raises(ProviderError, match="Ephemeral key not found") as exc_info:
                await service.get_ephemeral_key()

        assert exc_info.value.status_code == 500


class TestWeatherService:
    async def test_get_forecast(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"location": {"name": "Brooklyn"}})

        async with _client(handler) as http:
            service = WeatherService(api_key="wk", base_url=WEATHER_URL, http_client=http)
            forecast = await service.get_forecast(" 11215 ")

        assert forecast == {"location": {"name": "Brooklyn"}}
        assert seen["path"] == "/v1/forecast.json"
        assert seen["params"] == {
            "key": "wk",
            "q": "11215",
            "days": "1",
            "aqi": "no",
            "alerts": "no",
        }

    @pytest.mark.parametrize("zip_code", [None, "", "   "])
    async def test_blank_zip_code(self, zip_code):
        service = WeatherService(api_key="wk", base_url=WEATHER_URL)

        with pytest.raises(ValidationError, match="A valid zip code string is required."):
            await service.get_forecast(zip_code)

    async def test_provider_error_message(self):
        def handler(request):
            return httpx.Response(
                400, json={"error": {"code": 1006, "message": "No matching location found."}}
            )

        async with _client(handler) as http:
            service = WeatherService(api_key="wk", base_url=WEATHER_URL, http_client=http)
            with pytest.raises(ProviderError) as exc_info:
                await service.get_forecast("00000")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Weather API error: No matching location found."

    async def test_provider_error_without_json_body(self):
        def handler(request):
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        async with _client(handler) as http:
            service = WeatherService(api_key="wk", base_url=WEATHER_URL, http_client=http)
            with pytest.raises(ProviderError) as exc_info:
                await service.get_forecast("11215")

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Weather API error: Bad Gateway"

    async def test_unreachable_provider(self):
        async with _client(_unreachable) as http:
            service = WeatherService(api_key="wk", base_url=WEATHER_URL, http_client=http)
            with pytest.raises(ProviderUnavailableError) as exc_info:
                await service.get_forecast("11215")

        assert exc_info.value.status_code == 503
        assert exc_info.value.message.startswith("No response received from Weather API")

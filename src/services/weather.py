"""
Forecast lookup against WeatherAPI.com.
"""

import logging

import httpx

from core.config import PROVIDER_TIMEOUT_SECONDS, WEATHER_API_KEY, WEATHER_BASE_URL
from core.errors import ProviderError, ProviderUnavailableError, ValidationError

logger = logging.getLogger(__name__)


def _provider_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return response.reason_phrase


class WeatherService:
    def __init__(
        self,
        api_key: str = WEATHER_API_KEY,
        base_url: str = WEATHER_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._http = http_client

    async def _get(self, client: httpx.AsyncClient, zip_code: str) -> httpx.Response:
        return await client.get(
            f"{self.base_url}/forecast.json",
            params={
                "key": self.api_key,
                "q": zip_code,
                "days": 1,
                "aqi": "no",
                "alerts": "no",
            },
        )

    async def get_forecast(self, zip_code: str | None) -> dict:
        """
        One-day forecast for a zip code (or any location WeatherAPI accepts).

        Raises:
            ValidationError: zip code missing or blank
            ProviderError: provider answered with an error, status mirrored
            ProviderUnavailableError: no response from the provider
        """
        if not isinstance(zip_code, str) or not zip_code.strip():
            raise ValidationError("A valid zip code string is required.")
        zip_code = zip_code.strip()

        logger.info("Fetching weather forecast", extra={"zip_code": zip_code})
        try:
            if self._http is not None:
                response = await self._get(self._http, zip_code)
            else:
                async with httpx.AsyncClient(timeout=PROVIDER_TIMEOUT_SECONDS) as client:
                    response = await self._get(client, zip_code)
        except httpx.RequestError as e:
            logger.error("Weather API unreachable", extra={"error": str(e)})
            raise ProviderUnavailableError(f"No response received from Weather API: {e}")

        if response.is_error:
            message = _provider_message(response)
            logger.error(
                "Failed to fetch weather forecast",
                extra={"status": response.status_code, "error": message},
            )
            raise ProviderError(f"Weather API error: {message}", response.status_code)

        logger.info("Weather forecast retrieved", extra={"zip_code": zip_code})
        return response.json()

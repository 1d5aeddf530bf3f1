"""
Realtime voice session bootstrap against the OpenAI Realtime API.
"""

import logging

import httpx

from core.config import (
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    PROVIDER_TIMEOUT_SECONDS,
    REALTIME_MODEL,
    REALTIME_VOICE,
)
from core.errors import ProviderError, ProviderUnavailableError
from services.prompts import get_agent_instructions

logger = logging.getLogger(__name__)


class RealtimeService:
    """Issues realtime sessions (and their ephemeral client keys)."""

    def __init__(
        self,
        api_key: str = OPENAI_API_KEY,
        base_url: str = OPENAI_BASE_URL,
        model: str = REALTIME_MODEL,
        voice: str = REALTIME_VOICE,
        instructions: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.voice = voice
        self.instructions = instructions
        self._http = http_client

    def session_request(self) -> dict:
        return {
            "model": self.model,
            "voice": self.voice,
            "instructions": self.instructions or get_agent_instructions(),
        }

    async def _post_session(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.post(
            f"{self.base_url}/realtime/sessions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json=self.session_request(),
        )

    async def create_session(self) -> dict:
        """
        Create a realtime session.

        Returns:
            The provider's session payload, unmodified

        Raises:
            ProviderError: non-2xx response, status mirrored
            ProviderUnavailableError: provider unreachable
        """
        logger.info("Creating realtime session", extra={"model": self.model})
        try:
            if self._http is not None:
                response = await self._post_session(self._http)
            else:
                async with httpx.AsyncClient(timeout=PROVIDER_TIMEOUT_SECONDS) as client:
                    response = await self._post_session(client)
        except httpx.RequestError as e:
            logger.error("Realtime provider unreachable", extra={"error": str(e)})
            raise ProviderUnavailableError(f"No response received from OpenAI API: {e}")

        if response.is_error:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            logger.error(
                "OpenAI API error",
                extra={
                    "status": response.status_code,
                    "reason": response.reason_phrase,
                    "data": error_data,
                },
            )
            raise ProviderError(
                f"OpenAI API Error: {response.status_code} {response.reason_phrase}",
                response.status_code,
            )

        logger.info("Realtime session created")
        return response.json()

    async def get_ephemeral_key(self) -> str:
        """
        Create a session and return its short-lived client secret.

        Raises:
            ProviderError: if the session carries no client secret
        """
        session = await self.create_session()
        client_secret = session.get("client_secret") or {}
        key = client_secret.get("value") if isinstance(client_secret, dict) else None
        if not key:
            logger.error("Ephemeral key not found in response")
            raise ProviderError("Ephemeral key not found in response", 500)
        return key

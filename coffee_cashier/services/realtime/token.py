"""Short-lived realtime credential minting."""
import logging
from typing import Any, Dict, Optional

import httpx

from coffee_cashier.core.config import settings
from coffee_cashier.core.errors import TokenMintingError

logger = logging.getLogger(__name__)


class RealtimeTokenService:
    """Mints ephemeral client secrets so the long-lived API key never leaves the server."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.http_client = http_client

    def _session_config(self) -> Dict[str, Any]:
        return {
            "session": {
                "type": "realtime",
                "model": settings.openai_realtime_model,
                "audio": {
                    "output": {
                        "voice": settings.openai_realtime_voice,
                    },
                },
            },
        }

    async def _post(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.post(
            f"{self.base_url}/realtime/client_secrets",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json=self._session_config(),
        )

    async def mint(self) -> str:
        """
        Request an ephemeral key for one realtime session.

        Returns:
            The short-lived key

        Raises:
            TokenMintingError: if the upstream request fails or returns no key
        """
        if not self.api_key:
            raise TokenMintingError("OPENAI_API_KEY is not configured")

        try:
            if self.http_client is not None:
                response = await self._post(self.http_client)
            else:
                async with httpx.AsyncClient(timeout=10.0) as client:
                    response = await self._post(client)
        except httpx.HTTPError as e:
            logger.error(f"[REALTIME TOKEN] Request failed: {type(e).__name__}: {e}")
            raise TokenMintingError("Failed to generate token") from e

        if response.status_code >= 400:
            logger.error(
                f"[REALTIME TOKEN] client_secrets error: {response.status_code} {response.text}"
            )
            raise TokenMintingError(
                f"Failed to create session token: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TokenMintingError("Failed to generate token") from e
        key = (data.get("client_secret") or {}).get("value") or data.get("value")
        if not key:
            raise TokenMintingError("No ephemeral key returned from server")
        logger.info("[REALTIME TOKEN] Minted ephemeral realtime key")
        return key

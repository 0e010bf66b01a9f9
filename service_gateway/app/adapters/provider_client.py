"""
Generation provider client for the content gateway.
"""

from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.errors import ServiceError, TransportError, UpstreamError


MAX_TOKENS = 500
TEMPERATURE = 0.8


class GenerationProviderClient:
    """Client for an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.logger = get_logger("gateway.provider_client")
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def build_payload(self, system_message: str, user_message: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_message},
            ],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "n": 1,
        }

    async def complete(self, system_message: str, user_message: str) -> str:
        """Request a single completion and return its raw text."""
        if not self.api_key:
            raise ServiceError("Server missing OPENAI_API_KEY")

        url = f"{self.base_url}/chat/completions"
        try:
            response = await self._client.post(
                url,
                json=self.build_payload(system_message, user_message),
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.TransportError as exc:
            self.logger.error("Generation provider unreachable", url=url, error=str(exc))
            raise TransportError() from exc

        if not response.is_success:
            self.logger.warning(
                "Generation provider response not ok",
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            )
            raise UpstreamError(status=response.status_code, body=response.text)

        try:
            data = response.json()
        except ValueError as exc:
            self.logger.error("Generation provider returned non-JSON envelope", status_code=response.status_code)
            raise ServiceError() from exc

        return self.extract_text(data)

    @staticmethod
    def extract_text(data: Any) -> str:
        """Pull the completion text out of a chat or legacy completion envelope."""
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return ""

        choice = choices[0]
        message = choice.get("message")
        if isinstance(message, dict) and message.get("content"):
            return str(message["content"])
        if choice.get("text"):
            return str(choice["text"])
        return ""

"""
Gemini implementation of the content generator, over the Generative
Language REST API.
"""

from typing import Any, Optional

import httpx

from issuebot.core.config import GeminiSettings
from issuebot.core.exceptions import GenerationError
from issuebot.core.logging import get_logger
from issuebot.generation.base import ContentGenerator

logger = get_logger(__name__)


def extract_text(payload: dict[str, Any]) -> str:
    """Concatenate the text parts of every candidate in a response."""
    chunks: list[str] = []
    for candidate in payload.get("candidates") or []:
        content = candidate.get("content") or {}
        for part in content.get("parts") or []:
            text = part.get("text")
            if isinstance(text, str):
                chunks.append(text)
    return "".join(chunks)


class GeminiContentGenerator(ContentGenerator):
    """
    Calls ``models/{model}:generateContent`` once per prompt.

    The HTTP connection pool is shared between calls; no conversation
    state is kept.
    """

    def __init__(
        self,
        settings: GeminiSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the generator.

        Args:
            settings: Gemini backend settings
            transport: Optional httpx transport (tests)
        """
        self.model = settings.model
        self.base_url = settings.base_url.rstrip("/")
        self.timeout = settings.timeout
        self._api_key = settings.api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self._api_key,
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def generate(self, prompt: str) -> str:
        client = self._get_client()
        endpoint = f"/models/{self.model}:generateContent"

        try:
            response = await client.post(
                endpoint,
                json={"contents": [{"role": "user", "parts": [{"text": prompt}]}]},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Gemini request failed",
                model=self.model,
                status_code=e.response.status_code,
            )
            raise GenerationError(
                f"HTTP {e.response.status_code}: {e.response.text}",
                details={"model": self.model, "status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error("Gemini request error", model=self.model, error=str(e))
            raise GenerationError(f"Request failed: {e}", details={"model": self.model}) from e

        text = extract_text(response.json())
        if not text.strip():
            raise GenerationError("Empty response", details={"model": self.model})

        logger.debug("Generated content", model=self.model, prompt_chars=len(prompt), chars=len(text))
        return text

"""Gemini generateContent boundary: one POST per prompt, no retries."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from dreamsong._state import TransportFailure
from dreamsong.config import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL

logger = logging.getLogger(__name__)


def build_request_body(prompt_text: str) -> dict[str, Any]:
    return {"contents": [{"role": "user", "parts": [{"text": prompt_text}]}]}


class GeminiClient:
    """Async client for ``models/{model}:generateContent``.

    The underlying ``httpx.AsyncClient`` is built without a timeout: an
    unresponsive service keeps the caller waiting. Safe to share across
    concurrent slot requests.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=None, transport=transport)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def generate(self, prompt_text: str, credential: str) -> Any | TransportFailure:
        """POST *prompt_text* and return the decoded payload or a TransportFailure.

        An empty *credential* is sent as-is (``key=``). A 2xx body that is
        not JSON is returned as ``None`` and left to the classifier.
        """
        try:
            resp = await self._client.post(
                self.endpoint,
                params={"key": credential},
                headers={"Content-Type": "application/json"},
                json=build_request_body(prompt_text),
            )
        except httpx.HTTPError as e:
            logger.warning("gemini request failed: %s", e)
            return TransportFailure(detail=str(e) or type(e).__name__)

        if not resp.is_success:
            logger.warning("gemini returned HTTP %d %s", resp.status_code, resp.reason_phrase)
            return TransportFailure(status_code=resp.status_code, status_text=resp.reason_phrase)

        try:
            return resp.json()
        except ValueError:
            logger.warning("gemini returned a non-JSON body (%d bytes)", len(resp.content))
            return None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GeminiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

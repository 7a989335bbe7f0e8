"""Async Gemini generateContent client with a small inner retry layer."""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from skribbl_relay.common.errors import ProviderError
from skribbl_relay.common.templates import Prompt

LOGGER = logging.getLogger("skribbl_relay.predict.gemini")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class GeminiClient:
    """
    Thin wrapper over one shared httpx.AsyncClient.

    Built once at startup and never mutated afterwards, so concurrent
    requests can share it.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        temperature: float = 0.0,
        max_retries: int = 2,
        timeout: float = 30.0,
        base_url: str = DEFAULT_BASE_URL,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"x-goog-api-key": api_key},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _payload(self, prompt: Prompt) -> dict[str, Any]:
        payload = prompt.to_contents()
        payload["generationConfig"] = {"temperature": self.temperature}
        return payload

    async def invoke(self, prompt: Prompt) -> str:
        """
        Send one prompt and return the reply text.

        Transport errors, timeouts, 429 and 5xx are retried up to
        ``max_retries`` times; anything else fails at once.

        Raises:
            ProviderError: the call did not yield reply text.
        """
        url = f"/v1beta/models/{self.model}:generateContent"
        payload = self._payload(prompt)
        tries = self.max_retries + 1

        for attempt in range(tries):
            try:
                r = await self._client.post(url, json=payload)
                r.raise_for_status()
                data = r.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status in RETRYABLE_STATUS and attempt < tries - 1:
                    LOGGER.debug("Gemini returned %s, retrying", status)
                    await self._sleep(self.retry_delay * (attempt + 1))
                    continue
                raise ProviderError(f"Gemini HTTP error {status}") from e
            except httpx.TransportError as e:
                if attempt < tries - 1:
                    LOGGER.debug("Gemini transport error %r, retrying", e)
                    await self._sleep(self.retry_delay * (attempt + 1))
                    continue
                raise ProviderError(f"Gemini request failed: {e!r}") from e
            except ValueError as e:
                raise ProviderError("Gemini returned a non-JSON body") from e
            return _reply_text(data)

        raise ProviderError(f"Gemini request failed after {tries} tries")


def _reply_text(data: Any) -> str:
    """Join the text parts of the first candidate."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
        text = "".join(p.get("text", "") for p in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        reason = data.get("promptFeedback") if isinstance(data, dict) else None
        raise ProviderError(f"Malformed Gemini response (feedback={reason})") from e
    if not text:
        raise ProviderError("Gemini response contained no text")
    return text

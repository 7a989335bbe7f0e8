"""Retrying prediction fetch: prompt -> model -> word list.

The outer loop here is independent of the model client's own retries;
with defaults a single fetch may issue up to 3 x (1 + 2) HTTP calls.
"""
from __future__ import annotations
import asyncio
import json
import logging
import re
from typing import Any, Awaitable, Callable, Protocol

from skribbl_relay.common.errors import MalformedReply, ProviderUnavailable
from skribbl_relay.common.templates import Prompt, compose_prompt

LOGGER = logging.getLogger("skribbl_relay.predict.fetcher")

JSON_FENCE = re.compile(r"```json\n(.*?)\n```", re.DOTALL)
MAX_WORDS = 10


class Model(Protocol):
    async def invoke(self, prompt: Prompt) -> str: ...


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def extract_words(reply: str, strict: bool = False) -> list[Any]:
    """
    Pull the JSON array out of a model reply.

    A ```json fenced block wins over the surrounding text. Only array-ness
    is checked unless ``strict`` is set, in which case the array must hold
    at most 10 strings.

    Raises:
        MalformedReply: not JSON, or not an array.
    """
    text = reply.strip()
    m = JSON_FENCE.search(text)
    if m:
        text = m.group(1)

    try:
        words = json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise MalformedReply(f"reply is not valid JSON: {e}") from e

    if not isinstance(words, list):
        raise MalformedReply("AI response is not a valid JSON array.")
    if strict:
        if len(words) > MAX_WORDS:
            raise MalformedReply(f"expected at most {MAX_WORDS} words, got {len(words)}")
        if not all(isinstance(w, str) for w in words):
            raise MalformedReply("array contains non-string items")
    return words


class PredictionFetcher:
    """Bounded retry loop around one model call per attempt."""

    def __init__(
        self,
        model: Model,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        strict: bool = False,
    ) -> None:
        self.model = model
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.strict = strict
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Wait after failed ``attempt`` (1-based): 2s, 4s, ..."""
        return self.base_delay * attempt

    async def fetch(self, image: str) -> list[Any]:
        """
        Return the model's word list for one image.

        Raises:
            ProviderUnavailable: all attempts failed.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                LOGGER.info("Attempt %d: sending image to Gemini for analysis", attempt)
                reply = await self.model.invoke(compose_prompt(image))
                return extract_words(reply, strict=self.strict)
            except Exception as e:  # noqa: BLE001 - every attempt failure is retryable
                LOGGER.warning("Attempt %d failed: %s", attempt, e)
                if attempt == self.max_attempts:
                    LOGGER.error("Giving up after %d attempts", attempt)
                    raise ProviderUnavailable(f"no valid reply after {attempt} attempts") from e
                await self._sleep(self.delay_for(attempt))

        raise ProviderUnavailable("no attempts configured")

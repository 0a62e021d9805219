"""Client for the generative text endpoint that names spirits and gives them lines.

Every call resolves to a string or ``None``. Failures are logged and never
raised, so callers always have the local tables in ``fallbacks`` to fall back on.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from ..sim.core.config import NamingConfig
from ..sim.core.species import Species

logger = logging.getLogger(__name__)


def name_prompt(species: Species) -> str:
    return (
        "Generate a single, short, whimsical, Studio Ghibli-style name for a water spirit "
        f"that looks like a {species.name}. It should be unique and sound magical. "
        "Return ONLY the name, no other text."
    )


def phrase_prompt(species: Species, name: str) -> str:
    return (
        f"Roleplay as a {species.name} named {name} in a magical Ghibli aquarium. "
        f"Your personality is {species.personality}. A human just waved at you. "
        "Respond with one very short, poetic, funny, or mystical sentence (max 10 words)."
    )


def extract_text(payload: Any) -> Optional[str]:
    """Pull the first candidate's text out of a generateContent response."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(text, str):
        return None
    text = text.strip()
    return text or None


class GenerativeTextService:
    def __init__(self, config: NamingConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(self._config.api_key) or self._transport is not None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_seconds),
                transport=self._transport,
            )
            logger.debug("Text service client started")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("Text service client closed")

    async def generate(self, prompt: str) -> Optional[str]:
        if not self.configured:
            return None
        if self._client is None:
            await self.start()
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        params = {"key": self._config.api_key} if self._config.api_key else None
        attempts = 1 + max(0, self._config.max_retries)
        for attempt in range(attempts):
            try:
                response = await self._client.post(self._config.endpoint, json=body, params=params)
                response.raise_for_status()
                return extract_text(response.json())
            except (httpx.HTTPError, ValueError) as e:
                if attempt + 1 < attempts:
                    delay = self._config.retry_delay_seconds * (2 ** attempt)
                    logger.warning(
                        "Text request failed (%s), retrying in %.1fs... (attempt %d/%d)",
                        type(e).__name__,
                        delay,
                        attempt + 1,
                        attempts,
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.warning("Text request failed after %d attempts: %s", attempts, e)
        return None

    async def generate_name(self, species: Species) -> Optional[str]:
        return await self.generate(name_prompt(species))

    async def generate_phrase(self, species: Species, name: str) -> Optional[str]:
        return await self.generate(phrase_prompt(species, name))


def build_text_service(config: NamingConfig) -> Optional[GenerativeTextService]:
    if not config.enabled:
        return None
    if not config.api_key:
        logger.warning("Text service enabled without an api_key; using local names")
        return None
    return GenerativeTextService(config)

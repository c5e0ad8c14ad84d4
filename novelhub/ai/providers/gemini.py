"""Gemini text generation using the google-genai SDK."""

from __future__ import annotations

import logging
from typing import Final, Protocol

from google import genai

from novelhub.ai.backoff import is_rate_limit_error
from novelhub.ai.errors import ProviderError

logger = logging.getLogger(__name__)


class TextGenerationClient(Protocol):
  """Contract for a generative text call made with an explicit credential."""

  async def generate(self, *, model: str, api_key: str, prompt: str, json_output: bool = False) -> str:
    """Return the generated text or raise ProviderError."""


class GeminiTextClient:
  """Gemini client that builds one SDK client per API key."""

  DEFAULT_MODEL: Final[str] = "gemini-2.5-flash"

  def __init__(self) -> None:
    self._clients: dict[str, genai.Client] = {}

  def _client_for(self, api_key: str) -> genai.Client:
    client = self._clients.get(api_key)
    if client is None:
      client = genai.Client(api_key=api_key)
      self._clients[api_key] = client
    return client

  async def generate(self, *, model: str, api_key: str, prompt: str, json_output: bool = False) -> str:
    """Generate text from Gemini, wrapping every SDK failure in ProviderError."""
    if not api_key:
      raise ProviderError("Gemini API key is empty.")

    config = {"response_mime_type": "application/json"} if json_output else None
    try:
      # Use the async client to avoid blocking the asyncio event loop.
      response = await self._client_for(api_key).aio.models.generate_content(model=model or self.DEFAULT_MODEL, contents=prompt, config=config)
    except Exception as exc:  # noqa: BLE001
      rate_limited = is_rate_limit_error(exc)
      logger.warning("Gemini call failed model=%s rate_limited=%s error=%s", model, rate_limited, exc)
      raise ProviderError(str(exc), rate_limited=rate_limited) from exc

    text = response.text
    if not text:
      raise ProviderError("Gemini returned an empty response.")
    logger.debug("Gemini response (%d chars) model=%s", len(text), model)
    return text

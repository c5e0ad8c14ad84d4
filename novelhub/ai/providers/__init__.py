"""Provider implementations."""

from novelhub.ai.providers.gemini import GeminiTextClient, TextGenerationClient

__all__ = ["GeminiTextClient", "TextGenerationClient"]

"""Google Gemini API client wrapper for Storyteller."""

from storyteller_gemini_client.client import GeminiClient, get_client, set_client

__all__ = ["GeminiClient", "get_client", "set_client"]

"""
Error types for the AI chat layer.

Adapters raise these annotated with the vendor name, HTTP status and raw
response body. The chat orchestrator is the only place they are caught.
"""
from typing import Optional


PROVIDER_LABELS = {
    "anthropic": "Anthropic",
    "openai": "OpenAI",
    "gemini": "Gemini",
    "custom": "Custom",
}


class AIServiceError(Exception):
    """Base class for every AI layer failure."""

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider


class ConfigurationError(AIServiceError):
    """Selected provider is unknown or is missing its key/URL."""


class ProviderCallError(AIServiceError):
    """A vendor call failed; carries status (if any) and the raw body."""

    def __init__(
        self,
        provider: str,
        status_code: Optional[int] = None,
        body: str = "",
    ):
        self.status_code = status_code
        self.body = body
        status = status_code if status_code is not None else "network"
        super().__init__(
            f"{PROVIDER_LABELS.get(provider, provider.capitalize())} API error: {status} - {body}",
            provider=provider,
        )


class TransportError(ProviderCallError):
    """Non-2xx HTTP status, or the request never got a response."""


class MalformedResponseError(ProviderCallError):
    """2xx response whose body lacks the expected reply field."""

"""
Provider Factory - builds the configured adapter.
"""
from typing import Callable, Dict, Optional

import httpx

from newlife.core.config import Settings, settings as default_settings
from newlife.core.errors import ConfigurationError
from newlife.core.logging import ProviderCallLogger, get_logger
from newlife.services.adapter.provider import (
    AIProviderAdapter,
    AnthropicAdapter,
    CustomAdapter,
    GeminiAdapter,
    OpenAIAdapter,
)
from newlife.services.adapter.types import AIProvider

logger = get_logger(__name__)


def _anthropic(config: Settings, **kwargs) -> AIProviderAdapter:
    api_key, model = config.provider_config(AIProvider.ANTHROPIC.value)
    if not api_key:
        raise ConfigurationError("Anthropic API key not configured", provider="anthropic")
    return AnthropicAdapter(api_key, model, **kwargs)


def _openai(config: Settings, **kwargs) -> AIProviderAdapter:
    api_key, model = config.provider_config(AIProvider.OPENAI.value)
    if not api_key:
        raise ConfigurationError("OpenAI API key not configured", provider="openai")
    return OpenAIAdapter(api_key, model, **kwargs)


def _gemini(config: Settings, **kwargs) -> AIProviderAdapter:
    api_key, model = config.provider_config(AIProvider.GEMINI.value)
    if not api_key:
        raise ConfigurationError("Gemini API key not configured", provider="gemini")
    return GeminiAdapter(api_key, model, **kwargs)


def _custom(config: Settings, **kwargs) -> AIProviderAdapter:
    base_url, model = config.provider_config(AIProvider.CUSTOM.value)
    if not base_url:
        raise ConfigurationError("Custom AI URL not configured", provider="custom")
    return CustomAdapter(base_url, config.CUSTOM_AI_KEY or "", model, **kwargs)


_BUILDERS: Dict[AIProvider, Callable[..., AIProviderAdapter]] = {
    AIProvider.ANTHROPIC: _anthropic,
    AIProvider.OPENAI: _openai,
    AIProvider.GEMINI: _gemini,
    AIProvider.CUSTOM: _custom,
}


def create_service(
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AIProviderAdapter:
    """
    Create the adapter selected by AI_PROVIDER.

    Raises ConfigurationError for an unknown provider or when the provider's
    API key (base URL for custom) is missing. No network call is made.
    """
    config = config or default_settings
    name = (config.AI_PROVIDER or "").strip().lower()

    try:
        provider = AIProvider(name)
    except ValueError:
        raise ConfigurationError(f"Unknown AI provider: {config.AI_PROVIDER}", provider=name)

    call_logger = ProviderCallLogger(
        get_logger("newlife.services.adapter.provider"),
        enabled=config.AI_DEBUG_LOG,
        max_length=config.AI_DEBUG_LOG_MAX_LENGTH,
    )
    adapter = _BUILDERS[provider](
        config,
        timeout=config.AI_TIMEOUT,
        transport=transport,
        call_logger=call_logger,
    )

    logger.info(
        "Initializing AI adapter",
        provider=provider.value,
        model=adapter.model,
        base_url=adapter.base_url if provider != AIProvider.GEMINI else "[gemini-api]",
    )
    return adapter

"""
AI Adapter module - Provider abstraction layer.

Supports:
- Anthropic Messages API
- OpenAI Chat Completions API
- Google Gemini generateContent API
- A custom HTTP endpoint (POST {base_url}/chat)
"""
from newlife.services.adapter.types import (
    AIMessage,
    AIProvider,
    AIRequest,
    AIResponse,
    FinishReason,
    MessageRole,
    PregnancyContext,
    TokenUsage,
)
from newlife.services.adapter.provider import (
    AIProviderAdapter,
    AnthropicAdapter,
    CustomAdapter,
    GeminiAdapter,
    OpenAIAdapter,
)
from newlife.services.adapter.factory import create_service

__all__ = [
    "AIMessage",
    "AIProvider",
    "AIRequest",
    "AIResponse",
    "FinishReason",
    "MessageRole",
    "PregnancyContext",
    "TokenUsage",
    "AIProviderAdapter",
    "AnthropicAdapter",
    "CustomAdapter",
    "GeminiAdapter",
    "OpenAIAdapter",
    "create_service",
]

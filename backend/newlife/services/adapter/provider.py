"""
AI Provider Adapters - one class per vendor chat API.

Each adapter turns a normalized AIRequest into the vendor's wire format,
posts it, and maps the reply back to an AIResponse. Failures are raised as
TransportError / MalformedResponseError tagged with the vendor name, the
HTTP status and the raw body. Nothing is retried here.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from newlife.core.errors import MalformedResponseError, TransportError
from newlife.core.logging import get_logger, ProviderCallLogger
from newlife.prompts import SYSTEM_PROMPT_ACKNOWLEDGMENT, build_system_prompt
from newlife.services.adapter.types import (
    AIProvider,
    AIRequest,
    AIResponse,
    FinishReason,
    MessageRole,
    PregnancyContext,
    TokenUsage,
)

logger = get_logger(__name__)
default_call_logger = ProviderCallLogger(logger)


PROVIDER_CONFIG = {
    AIProvider.ANTHROPIC: {
        "base_url": "https://api.anthropic.com/v1",
        "default_model": "claude-3-5-sonnet-20241022",
    },
    AIProvider.OPENAI: {
        "base_url": "https://api.openai.com/v1",
        "default_model": "gpt-4o",
    },
    AIProvider.GEMINI: {
        "base_url": "https://generativelanguage.googleapis.com/v1beta",
        "default_model": "gemini-1.5-pro",
    },
}

ANTHROPIC_VERSION = "2023-06-01"


class AIProviderAdapter(ABC):
    """
    Abstract base class for AI provider adapters.

    Subclasses describe the wire format (`endpoint`, `build_payload`,
    `parse_response`, headers and query params); the HTTP call, status
    handling and call logging live here.
    """

    provider_name: str = "unknown"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        call_logger: Optional[ProviderCallLogger] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport
        self.call_logger = call_logger or default_call_logger

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """Path appended to base_url."""

    @abstractmethod
    def build_payload(self, request: AIRequest) -> dict[str, Any]:
        """Translate a normalized request into the vendor JSON body."""

    @abstractmethod
    def parse_response(self, data: Any) -> AIResponse:
        """
        Translate the vendor JSON body into an AIResponse.
        KeyError, IndexError and TypeError are reported as malformed.
        """

    def request_headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def request_params(self) -> dict[str, str]:
        return {}

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.endpoint}"

    def build_system_prompt(self, context: PregnancyContext) -> str:
        """Shared by all vendors, see newlife.prompts.context."""
        return build_system_prompt(context)

    async def send_message(self, request: AIRequest) -> AIResponse:
        """Send one chat completion request."""
        payload = self.build_payload(request)

        with self.call_logger.track_call(
            provider=self.provider_name,
            model=self.model,
            endpoint=self.endpoint,
        ) as call:
            call.add_messages([m.to_dict() for m in request.conversation()])
            call.set_request_params(
                temperature=request.resolved_temperature,
                max_tokens=request.resolved_max_tokens,
            )

            response = await self._post(payload)
            call.set_status(response.status_code)

            if not response.is_success:
                raise TransportError(self.provider_name, response.status_code, response.text)

            try:
                data = response.json()
            except ValueError:
                raise MalformedResponseError(
                    self.provider_name, response.status_code, response.text
                )

            try:
                result = self.parse_response(data)
            except (KeyError, IndexError, TypeError, AttributeError):
                raise MalformedResponseError(
                    self.provider_name, response.status_code, response.text
                )

            if not isinstance(result.content, str):
                raise MalformedResponseError(
                    self.provider_name, response.status_code, response.text
                )

            usage = result.usage if isinstance(result.usage, TokenUsage) else None
            call.set_response(
                content=result.content,
                prompt_tokens=usage.prompt_tokens if usage else None,
                completion_tokens=usage.completion_tokens if usage else None,
                total_tokens=result.total_tokens,
            )
            return result

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.post(
                    self.url,
                    headers=self.request_headers(),
                    params=self.request_params(),
                    json=payload,
                )
        except httpx.TimeoutException as e:
            raise TransportError(
                self.provider_name, None, f"Request timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(self.provider_name, None, str(e) or type(e).__name__) from e


class AnthropicAdapter(AIProviderAdapter):
    """Adapter for the Anthropic Messages API."""

    provider_name = AIProvider.ANTHROPIC.value
    endpoint = "messages"

    def __init__(
        self,
        api_key: str,
        model: str = PROVIDER_CONFIG[AIProvider.ANTHROPIC]["default_model"],
        **kwargs: Any,
    ):
        kwargs.setdefault("base_url", PROVIDER_CONFIG[AIProvider.ANTHROPIC]["base_url"])
        super().__init__(api_key=api_key, model=model, **kwargs)

    def request_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_payload(self, request: AIRequest) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self.model,
            "max_tokens": request.resolved_max_tokens,
            "temperature": request.resolved_temperature,
            "messages": [m.to_dict() for m in request.conversation()],
        }
        # System prompt is a top-level field, never a message
        if request.system_prompt:
            body["system"] = request.system_prompt
        return body

    def parse_response(self, data: Any) -> AIResponse:
        usage = data.get("usage") or {}
        return AIResponse(
            content=data["content"][0]["text"],
            finish_reason=(
                FinishReason.STOP if data.get("stop_reason") == "end_turn" else FinishReason.LENGTH
            ),
            usage=TokenUsage.of(usage.get("input_tokens"), usage.get("output_tokens")),
        )


class OpenAIAdapter(AIProviderAdapter):
    """Adapter for the OpenAI Chat Completions API."""

    provider_name = AIProvider.OPENAI.value
    endpoint = "chat/completions"

    def __init__(
        self,
        api_key: str,
        model: str = PROVIDER_CONFIG[AIProvider.OPENAI]["default_model"],
        **kwargs: Any,
    ):
        kwargs.setdefault("base_url", PROVIDER_CONFIG[AIProvider.OPENAI]["base_url"])
        super().__init__(api_key=api_key, model=model, **kwargs)

    def request_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def build_payload(self, request: AIRequest) -> dict[str, Any]:
        messages = [m.to_dict() for m in request.conversation()]
        if request.system_prompt:
            messages.insert(0, {"role": MessageRole.SYSTEM.value, "content": request.system_prompt})
        return {
            "model": self.model,
            "messages": messages,
            "max_tokens": request.resolved_max_tokens,
            "temperature": request.resolved_temperature,
        }

    def parse_response(self, data: Any) -> AIResponse:
        choice = data["choices"][0]
        usage = data.get("usage") or {}
        return AIResponse(
            content=choice["message"]["content"],
            finish_reason=(
                FinishReason.STOP if choice.get("finish_reason") == "stop" else FinishReason.LENGTH
            ),
            usage=TokenUsage.of(usage.get("prompt_tokens"), usage.get("completion_tokens")),
        )


class GeminiAdapter(AIProviderAdapter):
    """Adapter for the Google Gemini generateContent API."""

    provider_name = AIProvider.GEMINI.value

    def __init__(
        self,
        api_key: str,
        model: str = PROVIDER_CONFIG[AIProvider.GEMINI]["default_model"],
        **kwargs: Any,
    ):
        kwargs.setdefault("base_url", PROVIDER_CONFIG[AIProvider.GEMINI]["base_url"])
        super().__init__(api_key=api_key, model=model, **kwargs)

    @property
    def endpoint(self) -> str:
        return f"models/{self.model}:generateContent"

    def request_params(self) -> dict[str, str]:
        # Gemini authenticates with a query parameter, not a header
        return {"key": self.api_key}

    def build_contents(self, request: AIRequest) -> list[dict[str, Any]]:
        """
        Convert messages to Gemini turns (role: user | model).

        Gemini has no system role, so a system prompt becomes a leading user
        turn followed by a canned model acknowledgment to keep turns
        alternating.
        """
        contents = [
            {
                "role": "model" if MessageRole(m.role) == MessageRole.ASSISTANT else "user",
                "parts": [{"text": m.content}],
            }
            for m in request.conversation()
        ]

        if request.system_prompt:
            contents[:0] = [
                {"role": "user", "parts": [{"text": request.system_prompt}]},
                {"role": "model", "parts": [{"text": SYSTEM_PROMPT_ACKNOWLEDGMENT}]},
            ]
        return contents

    def build_payload(self, request: AIRequest) -> dict[str, Any]:
        return {
            "contents": self.build_contents(request),
            "generationConfig": {
                "temperature": request.resolved_temperature,
                "maxOutputTokens": request.resolved_max_tokens,
            },
        }

    def parse_response(self, data: Any) -> AIResponse:
        candidate = data["candidates"][0]
        usage = data.get("usageMetadata") or {}
        return AIResponse(
            content=candidate["content"]["parts"][0]["text"],
            finish_reason=(
                FinishReason.LENGTH if candidate.get("finishReason") == "MAX_TOKENS" else FinishReason.STOP
            ),
            usage=TokenUsage.of(usage.get("promptTokenCount"), usage.get("candidatesTokenCount")),
        )


class CustomAdapter(AIProviderAdapter):
    """
    Passthrough adapter for a self-hosted endpoint.

    Posts the normalized request to {base_url}/chat and reads the reply from
    `content`, `message` or `response`, in that order.
    """

    provider_name = AIProvider.CUSTOM.value
    endpoint = "chat"
    reply_fields = ("content", "message", "response")

    def __init__(self, base_url: str, api_key: str = "", model: str = "custom", **kwargs: Any):
        super().__init__(api_key=api_key or "", base_url=base_url, model=model, **kwargs)

    def request_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def build_payload(self, request: AIRequest) -> dict[str, Any]:
        messages = []
        for m in request.conversation():
            message = m.to_dict()
            if m.timestamp is not None:
                message["timestamp"] = m.timestamp.isoformat()
            messages.append(message)

        return {
            "messages": messages,
            "systemPrompt": request.system_prompt,
            "temperature": request.resolved_temperature,
            "maxTokens": request.resolved_max_tokens,
        }

    def parse_response(self, data: Any) -> AIResponse:
        if not isinstance(data, dict):
            raise TypeError("custom response is not a JSON object")

        for name in self.reply_fields:
            if data.get(name):
                content = data[name]
                break
        else:
            raise KeyError("content")

        return AIResponse(
            content=content,
            finish_reason=FinishReason.STOP,
            usage=data.get("usage"),
        )

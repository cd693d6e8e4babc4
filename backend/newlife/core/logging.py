"""
Structured logging configuration.
Health data and API keys stay out of the logs unless AI_DEBUG_LOG is set.
"""
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, List, Optional

import structlog
from structlog.types import Processor

from newlife.core.config import Settings, settings as default_settings

_HANDLER_NAME = "newlife"


def setup_logging(config: Optional[Settings] = None) -> None:
    """
    Route stdlib and structlog output through one stdout handler.

    Safe to call more than once; the handler installed by a previous call
    is replaced, not duplicated.
    """
    config = config or default_settings

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if config.LOG_FORMAT == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

    # httpx logs full URLs, and the Gemini key travels in the query string
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def truncate(content: str, max_length: int = 0) -> str:
    """Cut `content` to `max_length` chars; 0 means no limit."""
    if max_length <= 0 or len(content) <= max_length:
        return content
    return f"{content[:max_length]}... [{len(content) - max_length} more chars]"


@dataclass
class ProviderCall:
    """What gets logged about one vendor request."""
    provider: str
    model: str
    endpoint: str
    call_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    roles: List[str] = field(default_factory=list)
    request_chars: int = 0
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    status_code: Optional[int] = None
    response_chars: int = 0
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    started: float = 0.0
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error_type is not None


class ProviderCallLogger:
    """
    Per-call logging for vendor requests.

    Usage:
        call_logger = ProviderCallLogger(logger)
        with call_logger.track_call("anthropic", model, "messages") as call:
            call.add_messages(messages)
            ...
            call.set_response(content, total_tokens=usage.total_tokens)
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        enabled: Optional[bool] = None,
        max_length: Optional[int] = None,
    ):
        self.logger = logger
        self.enabled = default_settings.AI_DEBUG_LOG if enabled is None else enabled
        self.max_length = (
            default_settings.AI_DEBUG_LOG_MAX_LENGTH if max_length is None else max_length
        )

    @contextmanager
    def track_call(
        self,
        provider: str,
        model: str,
        endpoint: str,
    ) -> Generator["ProviderCallTracker", None, None]:
        """Yield a tracker and log one summary line when the block exits."""
        tracker = ProviderCallTracker(
            self.logger,
            ProviderCall(provider=provider, model=model, endpoint=endpoint),
            enabled=self.enabled,
            max_length=self.max_length,
        )
        try:
            yield tracker
        except Exception as e:
            tracker.set_error(type(e).__name__, str(e))
            raise
        finally:
            tracker.finish()


class ProviderCallTracker:
    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        call: ProviderCall,
        enabled: bool = False,
        max_length: int = 0,
    ):
        self.logger = logger
        self.call = call
        self.enabled = enabled
        self.max_length = max_length
        self.call.started = time.monotonic()

    def add_messages(self, messages: List[dict]) -> None:
        """Count outgoing turns; bodies only reach the log in debug mode."""
        for message in messages:
            role = message.get("role", "unknown")
            content = message.get("content", "")
            self.call.roles.append(role)
            self.call.request_chars += len(content)

            if self.enabled:
                self.logger.debug(
                    "AI request message",
                    call_id=self.call.call_id,
                    role=role,
                    content=truncate(content, self.max_length),
                )

    def set_request_params(self, temperature: float, max_tokens: int) -> None:
        self.call.temperature = temperature
        self.call.max_tokens = max_tokens

    def set_status(self, status_code: int) -> None:
        self.call.status_code = status_code

    def set_response(
        self,
        content: str,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        total_tokens: Optional[int] = None,
    ) -> None:
        self.call.response_chars = len(content)
        self.call.prompt_tokens = prompt_tokens
        self.call.completion_tokens = completion_tokens
        self.call.total_tokens = total_tokens

        if self.enabled:
            self.logger.debug(
                "AI response content",
                call_id=self.call.call_id,
                content=truncate(content, self.max_length),
            )

    def set_error(self, error_type: str, error_message: str) -> None:
        self.call.error_type = error_type
        # Vendor error bodies can echo the prompt back
        self.call.error_message = truncate(error_message, self.max_length or 500)

    def finish(self) -> None:
        call = self.call
        summary: dict[str, Any] = {
            "call_id": call.call_id,
            "provider": call.provider,
            "model": call.model,
            "endpoint": call.endpoint,
            "status_code": call.status_code,
            "duration_ms": round((time.monotonic() - call.started) * 1000, 2),
        }

        if call.failed:
            self.logger.error(
                "AI call failed",
                **summary,
                error_type=call.error_type,
                error_message=call.error_message,
            )
            return

        self.logger.info(
            "AI call completed",
            **summary,
            message_roles=call.roles,
            request_chars=call.request_chars,
            response_chars=call.response_chars,
            temperature=call.temperature,
            max_tokens=call.max_tokens,
            prompt_tokens=call.prompt_tokens,
            completion_tokens=call.completion_tokens,
            total_tokens=call.total_tokens,
        )

"""
Vendor-agnostic request/response shapes shared by every provider adapter.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from newlife.models import HospitalVisit, Milestone, Pregnancy, Symptom


DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024


class AIProvider(str, Enum):
    """Supported AI vendors."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"
    CUSTOM = "custom"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class FinishReason(str, Enum):
    STOP = "stop"
    LENGTH = "length"
    ERROR = "error"


@dataclass
class AIMessage:
    """One turn of the normalized conversation."""
    role: MessageRole
    content: str
    timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {"role": MessageRole(self.role).value, "content": self.content}


@dataclass
class AIRequest:
    """
    Normalized chat request.

    `messages` is in chronological order. `temperature` and `max_tokens`
    left as None fall back to 0.7 and 1024 inside the adapters.
    """
    messages: List[AIMessage] = field(default_factory=list)
    system_prompt: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def __post_init__(self):
        if self.temperature is not None and not 0 <= self.temperature <= 2:
            raise ValueError(f"temperature must be within [0, 2], got {self.temperature}")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")

    @property
    def resolved_temperature(self) -> float:
        return DEFAULT_TEMPERATURE if self.temperature is None else self.temperature

    @property
    def resolved_max_tokens(self) -> int:
        return DEFAULT_MAX_TOKENS if self.max_tokens is None else self.max_tokens

    def conversation(self) -> List[AIMessage]:
        """Messages without system-role entries."""
        return [m for m in self.messages if MessageRole(m.role) != MessageRole.SYSTEM]


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def of(cls, prompt_tokens: Optional[int], completion_tokens: Optional[int]) -> "TokenUsage":
        """Build usage where the vendor reports no total; missing counts become 0."""
        prompt = prompt_tokens or 0
        completion = completion_tokens or 0
        return cls(prompt, completion, prompt + completion)


@dataclass
class AIResponse:
    """
    Normalized chat response.

    `usage` is a TokenUsage for the built-in vendors; the custom provider
    passes whatever its endpoint returned.
    """
    content: str
    finish_reason: FinishReason = FinishReason.STOP
    usage: Optional[Union[TokenUsage, Mapping[str, Any]]] = None

    @property
    def total_tokens(self) -> Optional[int]:
        if self.usage is None:
            return None
        if isinstance(self.usage, TokenUsage):
            return self.usage.total_tokens
        if isinstance(self.usage, Mapping):
            total = self.usage.get("totalTokens", self.usage.get("total_tokens"))
            return total if isinstance(total, int) else None
        return None


@dataclass(frozen=True)
class PregnancyContext:
    """
    Point-in-time snapshot handed to the system prompt builder.
    Lists are newest-first.
    """
    pregnancy: Pregnancy
    recent_visits: Tuple[HospitalVisit, ...] = ()
    recent_symptoms: Tuple[Symptom, ...] = ()
    recent_milestones: Tuple[Milestone, ...] = ()

    @classmethod
    def build(
        cls,
        pregnancy: Pregnancy,
        visits: Sequence[HospitalVisit] = (),
        symptoms: Sequence[Symptom] = (),
        milestones: Sequence[Milestone] = (),
    ) -> "PregnancyContext":
        """Snapshot the most recent 5 visits, 5 symptoms and 3 milestones."""
        return cls(
            pregnancy=pregnancy,
            recent_visits=tuple(visits[:5]),
            recent_symptoms=tuple(symptoms[:5]),
            recent_milestones=tuple(milestones[:3]),
        )

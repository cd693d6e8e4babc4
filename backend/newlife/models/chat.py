"""
Chat message record. Written once per turn, never updated.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from newlife.models.base import StoredModel


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMetadata(StoredModel):
    model: Optional[str] = None
    tokens: Optional[int] = None
    error: Optional[bool] = None


class ChatMessage(StoredModel):
    """One persisted conversation turn."""

    id: str = ""
    conversation_id: str
    role: ChatRole
    content: str
    timestamp: datetime
    metadata: Optional[ChatMetadata] = None

    @property
    def is_error(self) -> bool:
        return bool(self.metadata and self.metadata.error)

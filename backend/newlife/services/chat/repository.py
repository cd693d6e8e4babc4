"""
Chat Repository - persisted conversation turns.
"""
from datetime import datetime, timezone
from typing import Callable, List, Optional

from newlife.core.logging import get_logger
from newlife.models import ChatMessage, ChatMetadata, ChatRole
from newlife.services.store import DocumentStore, Unsubscribe
from newlife.services.store.paths import CHAT_MESSAGES, records_path

logger = get_logger(__name__)

DEFAULT_MESSAGE_LIMIT = 50


class ChatRepository:
    """Write-once storage of chat turns, one conversation per pregnancy."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def add_message(
        self,
        user_id: str,
        pregnancy_id: str,
        role: ChatRole,
        content: str,
        metadata: Optional[ChatMetadata] = None,
    ) -> ChatMessage:
        """
        Persist one turn.

        Args:
            user_id: Owner of the conversation
            pregnancy_id: Conversation id
            role: user or assistant
            content: Message text
            metadata: Token count, model, error flag

        Returns:
            The stored ChatMessage with id and timestamp set
        """
        message = ChatMessage(
            conversation_id=pregnancy_id,
            role=role,
            content=content,
            timestamp=datetime.now(timezone.utc),
            metadata=metadata,
        )
        message_id = await self.store.add(
            records_path(user_id, pregnancy_id, CHAT_MESSAGES), message.to_dict()
        )

        logger.debug(
            "Stored chat message",
            message_id=message_id,
            pregnancy_id=pregnancy_id,
            role=message.role,
            content_length=len(content),
        )
        return message.model_copy(update={"id": message_id})

    async def get_messages(
        self,
        user_id: str,
        pregnancy_id: str,
        limit: int = DEFAULT_MESSAGE_LIMIT,
    ) -> List[ChatMessage]:
        """Most recent `limit` messages, oldest first."""
        records = await self.store.query(
            records_path(user_id, pregnancy_id, CHAT_MESSAGES),
            order_by="timestamp",
            descending=True,
            limit=limit,
        )
        return [ChatMessage.from_dict(r) for r in reversed(records)]

    def subscribe_messages(
        self,
        user_id: str,
        pregnancy_id: str,
        callback: Callable[[List[ChatMessage]], None],
        limit: int = DEFAULT_MESSAGE_LIMIT,
    ) -> Unsubscribe:
        """Live view of the most recent `limit` messages, oldest first."""
        return self.store.subscribe(
            records_path(user_id, pregnancy_id, CHAT_MESSAGES),
            lambda records: callback([ChatMessage.from_dict(r) for r in reversed(records)]),
            order_by="timestamp",
            descending=True,
            limit=limit,
        )

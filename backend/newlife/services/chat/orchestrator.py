"""
Chat Orchestrator - runs one pregnancy's conversation with the assistant.

Per send: persist the user turn, snapshot the pregnancy context, build the
system prompt, call the provider adapter with the recent history, persist
the reply. Any failure becomes a flagged fallback reply plus a dismissible
error string; nothing is raised to the caller.
"""
from enum import Enum
from typing import List, Optional

import httpx

from newlife.core.config import Settings, settings as default_settings
from newlife.core.errors import AIServiceError, ConfigurationError
from newlife.core.logging import get_logger
from newlife.models import ChatMessage, ChatMetadata, ChatRole
from newlife.prompts import FALLBACK_REPLY
from newlife.services.adapter import (
    AIMessage,
    AIProviderAdapter,
    AIRequest,
    MessageRole,
    create_service,
)
from newlife.services.chat.repository import ChatRepository
from newlife.services.pregnancy import PregnancyRepository
from newlife.services.store import DocumentStore, StoreError, Unsubscribe

logger = get_logger(__name__)


class ConversationStatus(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    ERROR = "error"  # last send failed; new sends are still accepted


class ChatOrchestrator:
    """
    Conversation state for one (user, pregnancy) pair.

    At most one send is in flight at a time. A send attempted while another
    is outstanding is rejected, never queued, so user and assistant turns
    keep alternating.
    """

    def __init__(
        self,
        user_id: str,
        pregnancy_id: str,
        adapter: Optional[AIProviderAdapter],
        chat_repository: ChatRepository,
        pregnancy_repository: PregnancyRepository,
        config: Optional[Settings] = None,
        init_error: Optional[str] = None,
    ):
        self.user_id = user_id
        self.pregnancy_id = pregnancy_id
        self.adapter = adapter
        self.chat_repository = chat_repository
        self.pregnancy_repository = pregnancy_repository
        self.config = config or default_settings

        self.status = ConversationStatus.IDLE
        self.error: Optional[str] = init_error
        self._messages: List[ChatMessage] = []
        self._unsubscribe: Optional[Unsubscribe] = None

    @classmethod
    def create(
        cls,
        store: DocumentStore,
        user_id: str,
        pregnancy_id: str,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ChatOrchestrator":
        """
        Build an orchestrator with the configured adapter.

        A ConfigurationError leaves chat disabled (`available` is False)
        with the reason in `error`, instead of raising.
        """
        adapter, init_error = build_adapter(config, transport)
        return cls(
            user_id=user_id,
            pregnancy_id=pregnancy_id,
            adapter=adapter,
            chat_repository=ChatRepository(store),
            pregnancy_repository=PregnancyRepository(store),
            config=config,
            init_error=init_error,
        )

    @property
    def available(self) -> bool:
        return self.adapter is not None

    @property
    def sending(self) -> bool:
        return self.status == ConversationStatus.SENDING

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    # ========================================
    # History
    # ========================================

    async def load_history(self) -> List[ChatMessage]:
        self._messages = await self.chat_repository.get_messages(
            self.user_id, self.pregnancy_id, limit=self.config.CHAT_MESSAGE_LIMIT
        )
        return self.messages

    def start(self) -> None:
        """Follow the stored conversation live."""
        if self._unsubscribe is None:
            self._unsubscribe = self.chat_repository.subscribe_messages(
                self.user_id,
                self.pregnancy_id,
                self._on_snapshot,
                limit=self.config.CHAT_MESSAGE_LIMIT,
            )

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_snapshot(self, messages: List[ChatMessage]) -> None:
        self._messages = list(messages)

    def _remember(self, message: ChatMessage) -> None:
        if all(m.id != message.id for m in self._messages):
            self._messages.append(message)

    def recent_history(self) -> List[AIMessage]:
        """
        The last CHAT_HISTORY_LIMIT turns, oldest first, user turns and
        assistant turns alternating and opening with a user turn.

        A user turn with no reply (left behind by an interrupted send) is
        dropped: replaced by the next user turn, or left out when it is last.
        """
        turns: List[ChatMessage] = []
        for message in self._messages:
            if turns and turns[-1].role == message.role == ChatRole.USER.value:
                turns[-1] = message
            else:
                turns.append(message)
        if turns and turns[-1].role == ChatRole.USER.value:
            turns.pop()

        limit = self.config.CHAT_HISTORY_LIMIT
        turns = turns[-limit:] if limit > 0 else []
        while turns and turns[0].role != ChatRole.USER.value:
            turns.pop(0)

        return [
            AIMessage(role=MessageRole(m.role), content=m.content, timestamp=m.timestamp)
            for m in turns
        ]

    # ========================================
    # Sending
    # ========================================

    async def pregnancy_exists(self) -> bool:
        pregnancy = await self.pregnancy_repository.get_pregnancy(
            self.user_id, self.pregnancy_id
        )
        return pregnancy is not None

    def _begin_send(self) -> bool:
        """Check-and-set the in-flight guard. Runs without suspending."""
        if self.status == ConversationStatus.SENDING:
            return False
        self.status = ConversationStatus.SENDING
        self.error = None
        return True

    async def send_message(self, text: str) -> Optional[ChatMessage]:
        """
        Send a user message and persist the reply.

        Returns:
            The stored assistant message (real or fallback), or None when
            the text is blank, chat is disabled, a send is in flight or the
            pregnancy does not exist (nothing is stored in those cases)
        """
        content = (text or "").strip()
        if not content:
            return None

        if self.adapter is None:
            self.error = self.error or "Cannot send message: AI service is not configured"
            return None

        if not self._begin_send():
            logger.warning(
                "Send rejected, another message is in flight",
                pregnancy_id=self.pregnancy_id,
            )
            return None

        if not await self.pregnancy_exists():
            self.status = ConversationStatus.IDLE
            self.error = f"Cannot send message: pregnancy {self.pregnancy_id} not found"
            logger.warning("Send rejected, unknown pregnancy", pregnancy_id=self.pregnancy_id)
            return None

        history = self.recent_history()

        try:
            user_message = await self.chat_repository.add_message(
                self.user_id, self.pregnancy_id, ChatRole.USER, content
            )
            self._remember(user_message)

            context = await self.pregnancy_repository.load_context(
                self.user_id, self.pregnancy_id
            )
            if context is None:
                raise StoreError(f"Pregnancy {self.pregnancy_id} not found")

            request = AIRequest(
                messages=history + [
                    AIMessage(MessageRole.USER, content, user_message.timestamp)
                ],
                system_prompt=self.adapter.build_system_prompt(context),
                temperature=self.config.AI_TEMPERATURE,
                max_tokens=self.config.AI_MAX_TOKENS,
            )
            response = await self.adapter.send_message(request)

            reply = await self.chat_repository.add_message(
                self.user_id,
                self.pregnancy_id,
                ChatRole.ASSISTANT,
                response.content,
                metadata=ChatMetadata(model=self.adapter.model, tokens=response.total_tokens),
            )
            self._remember(reply)
        except (AIServiceError, StoreError) as e:
            return await self._fail(e)
        except Exception as e:
            logger.exception("Unexpected chat failure", pregnancy_id=self.pregnancy_id)
            return await self._fail(e)

        self.status = ConversationStatus.IDLE
        logger.info(
            "Chat turn completed",
            pregnancy_id=self.pregnancy_id,
            provider=self.adapter.provider_name,
            history_turns=len(history),
            tokens=response.total_tokens,
        )
        return reply

    async def _fail(self, error: Exception) -> Optional[ChatMessage]:
        """Expose the error and leave a flagged fallback turn in the history."""
        self.status = ConversationStatus.ERROR
        self.error = str(error) or "Failed to send message"

        logger.error(
            "Chat send failed",
            pregnancy_id=self.pregnancy_id,
            error_type=type(error).__name__,
            provider=getattr(error, "provider", None),
            status_code=getattr(error, "status_code", None),
        )

        try:
            fallback = await self.chat_repository.add_message(
                self.user_id,
                self.pregnancy_id,
                ChatRole.ASSISTANT,
                FALLBACK_REPLY,
                metadata=ChatMetadata(error=True),
            )
        except StoreError as e:
            logger.error(
                "Could not store fallback reply",
                pregnancy_id=self.pregnancy_id,
                error=str(e),
            )
            return None

        self._remember(fallback)
        return fallback

    def clear_error(self) -> None:
        """Dismiss the transient error without sending anything."""
        self.error = None
        if self.status == ConversationStatus.ERROR:
            self.status = ConversationStatus.IDLE


def build_adapter(
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[Optional[AIProviderAdapter], Optional[str]]:
    """Create the configured adapter, or (None, reason) when misconfigured."""
    try:
        return create_service(config, transport=transport), None
    except ConfigurationError as e:
        logger.error("AI service disabled", provider=e.provider, error=str(e))
        return None, str(e)

"""
Chat module - conversation orchestration over the provider adapters.
"""
from newlife.services.chat.orchestrator import (
    ChatOrchestrator,
    ConversationStatus,
    build_adapter,
)
from newlife.services.chat.repository import ChatRepository
from newlife.services.chat.sessions import ChatSessions

__all__ = [
    "ChatOrchestrator",
    "ChatRepository",
    "ChatSessions",
    "ConversationStatus",
    "build_adapter",
]

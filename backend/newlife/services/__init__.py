"""
Services module - Application business logic layer.

Modules:
- adapter: AI provider abstraction layer
- chat: Conversation orchestration
- pregnancy: Pregnancy profile and records
- store: Document store the other services persist through
"""
from newlife.services.adapter import create_service
from newlife.services.chat import ChatOrchestrator, ChatSessions, ConversationStatus
from newlife.services.store import MemoryDocumentStore

__all__ = [
    "ChatOrchestrator",
    "ChatSessions",
    "ConversationStatus",
    "MemoryDocumentStore",
    "create_service",
]

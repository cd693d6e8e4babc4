"""
Chat Sessions - one orchestrator per (user, pregnancy).
"""
from collections import OrderedDict
from typing import Optional, Tuple

import httpx

from newlife.core.config import Settings, settings as default_settings
from newlife.core.logging import get_logger
from newlife.services.chat.orchestrator import ChatOrchestrator, build_adapter
from newlife.services.chat.repository import ChatRepository
from newlife.services.pregnancy import PregnancyRepository
from newlife.services.store import DocumentStore

logger = get_logger(__name__)


class ChatSessions:
    """
    Registry of live conversations.

    The adapter is built once and shared; adapters hold only credentials,
    so conversations share no mutable state. At most CHAT_SESSION_LIMIT
    sessions stay open; past that the least recently used idle one is
    closed.
    """

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.config = config or default_settings
        self.adapter, self.init_error = build_adapter(self.config, transport)
        self.chat_repository = ChatRepository(store)
        self.pregnancy_repository = PregnancyRepository(store)
        self._sessions: "OrderedDict[Tuple[str, str], ChatOrchestrator]" = OrderedDict()

    @property
    def available(self) -> bool:
        return self.adapter is not None

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, user_id: str, pregnancy_id: str) -> Optional[ChatOrchestrator]:
        """
        Get the conversation; on first use it subscribes to the stored history.

        Returns:
            The session, or None if the pregnancy does not exist
        """
        key = (user_id, pregnancy_id)
        session = self._sessions.get(key)
        if session is not None:
            self._sessions.move_to_end(key)
            return session

        if await self.pregnancy_repository.get_pregnancy(user_id, pregnancy_id) is None:
            return None

        # Another request may have opened it while we were reading
        session = self._sessions.get(key)
        if session is not None:
            self._sessions.move_to_end(key)
            return session

        session = ChatOrchestrator(
            user_id=user_id,
            pregnancy_id=pregnancy_id,
            adapter=self.adapter,
            chat_repository=self.chat_repository,
            pregnancy_repository=self.pregnancy_repository,
            config=self.config,
            init_error=self.init_error,
        )
        self._sessions[key] = session
        session.start()
        self._evict(keep=key)

        logger.debug("Opened chat session", user_id=user_id, pregnancy_id=pregnancy_id)
        return session

    def _evict(self, keep: Tuple[str, str]) -> None:
        limit = max(self.config.CHAT_SESSION_LIMIT, 1)
        for key in list(self._sessions):
            if len(self._sessions) <= limit:
                return
            if key == keep or self._sessions[key].sending:
                continue
            self._sessions.pop(key).close()
            logger.debug("Closed idle chat session", user_id=key[0], pregnancy_id=key[1])

    def close(self, user_id: str, pregnancy_id: str) -> None:
        session = self._sessions.pop((user_id, pregnancy_id), None)
        if session is not None:
            session.close()

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

"""
NewLifeJournal Backend - FastAPI Application
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from newlife.core.config import Settings, settings
from newlife.core.logging import setup_logging, get_logger
from newlife.api import chat
from newlife.services.chat import ChatSessions
from newlife.services.store import DocumentStore, MemoryDocumentStore

logger = get_logger(__name__)


def create_app(
    store: Optional[DocumentStore] = None,
    config: Optional[Settings] = None,
    sessions: Optional[ChatSessions] = None,
) -> FastAPI:
    """Build the application around a document store."""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config)
        logger.info(
            "Starting NewLifeJournal Backend",
            version="1.0.0",
            ai_provider=config.AI_PROVIDER,
            chat_available=app.state.chat_sessions.available,
        )

        yield

        app.state.chat_sessions.close_all()
        logger.info("Shutting down NewLifeJournal Backend")

    app = FastAPI(
        title="NewLifeJournal API",
        description="Pregnancy journal with an AI assistant",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.chat_sessions = sessions or ChatSessions(store or MemoryDocumentStore(), config)

    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "newlife-backend",
            "chat_available": app.state.chat_sessions.available,
        }

    return app


app = create_app()

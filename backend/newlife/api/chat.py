"""
Chat API endpoints.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from pydantic import BaseModel, Field, field_validator

from newlife.core.logging import get_logger
from newlife.models import ChatMessage
from newlife.services.chat import ChatOrchestrator, ChatSessions

logger = get_logger(__name__)
router = APIRouter()


# ========================================
# Request/Response Schemas
# ========================================

class SendMessageRequest(BaseModel):
    """Request to send a chat message."""
    content: str = Field(..., description="User message text")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class ChatStatusResponse(BaseModel):
    """Conversation state."""
    status: str
    sending: bool
    available: bool
    error: Optional[str] = None


class SendMessageResponse(BaseModel):
    """Assistant turn produced by a send."""
    message: dict[str, Any]
    status: str
    error: Optional[str] = None


def _serialize(message: ChatMessage) -> dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True, exclude_none=True)


def get_sessions(request: Request) -> ChatSessions:
    return request.app.state.chat_sessions


async def get_session(
    pregnancy_id: str,
    x_user_id: str = Header(..., description="Authenticated user id"),
    sessions: ChatSessions = Depends(get_sessions),
) -> ChatOrchestrator:
    session = await sessions.get(x_user_id, pregnancy_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Pregnancy {pregnancy_id} not found")
    return session


# ========================================
# Endpoints
# ========================================

@router.get("/{pregnancy_id}/messages")
async def list_messages(session: ChatOrchestrator = Depends(get_session)):
    """Conversation history, oldest first."""
    return [_serialize(m) for m in session.messages]


@router.post("/{pregnancy_id}/messages", response_model=SendMessageResponse)
async def send_message(
    body: SendMessageRequest,
    session: ChatOrchestrator = Depends(get_session),
):
    """
    Send a message and wait for the assistant reply.

    A failed AI call still returns 200 with the flagged fallback reply and
    the error string, matching what the conversation history shows.
    """
    if not session.available:
        raise HTTPException(status_code=503, detail=session.error or "AI service unavailable")
    if session.sending:
        raise HTTPException(status_code=409, detail="A message is already being sent")

    reply = await session.send_message(body.content)
    if reply is None:
        if session.sending:
            raise HTTPException(status_code=409, detail="A message is already being sent")
        if not await session.pregnancy_exists():
            raise HTTPException(status_code=404, detail=session.error)
        raise HTTPException(status_code=500, detail=session.error or "Failed to send message")

    return SendMessageResponse(
        message=_serialize(reply),
        status=session.status.value,
        error=session.error,
    )


@router.get("/{pregnancy_id}/status", response_model=ChatStatusResponse)
async def get_status(session: ChatOrchestrator = Depends(get_session)):
    return ChatStatusResponse(
        status=session.status.value,
        sending=session.sending,
        available=session.available,
        error=session.error,
    )


@router.delete("/{pregnancy_id}/error", status_code=204)
async def clear_error(session: ChatOrchestrator = Depends(get_session)):
    """Dismiss the transient error."""
    session.clear_error()
    return Response(status_code=204)

"""
Conversations API.

GET    /v1/conversations/me          — Current session snapshot
POST   /v1/conversations/me/end      — End the current session
DELETE /v1/conversations/me/context  — Forget collected context, keep the session
GET    /v1/conversations/stats       — Session counts
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_chatbot_engine, get_user
from ..orchestrator.orchestrator import ChatbotEngine
from ..services import realtime

logger = logging.getLogger(__name__)

conversations_router = APIRouter(prefix="/conversations", tags=["conversations"])


class SessionOut(BaseModel):
    session_id: str
    user_id: str
    status: str
    started_at: str
    last_activity_at: str
    ended_at: Optional[str] = None
    message_count: int
    last_intent: Optional[str] = None
    context: dict[str, str] = {}


class StatsOut(BaseModel):
    active_session_count: int
    total_sessions: int


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active conversation")


@conversations_router.get("/me", response_model=SessionOut)
async def get_conversation(
    user: AuthenticatedUser = Depends(get_user),
    engine: ChatbotEngine = Depends(get_chatbot_engine),
):
    """The caller's most recent session, in any status."""
    session = engine.store.get_current(user.user_id)
    if session is None:
        raise _not_found()
    return SessionOut(**session.to_dict())


@conversations_router.post("/me/end", response_model=SessionOut)
async def end_conversation(
    user: AuthenticatedUser = Depends(get_user),
    engine: ChatbotEngine = Depends(get_chatbot_engine),
):
    session = engine.store.end_session(user.user_id)
    if session is None:
        raise _not_found()
    await realtime.session_ended(user.user_id, session.session_id)
    return SessionOut(**session.to_dict())


@conversations_router.delete("/me/context", status_code=status.HTTP_204_NO_CONTENT)
async def clear_context(
    user: AuthenticatedUser = Depends(get_user),
    engine: ChatbotEngine = Depends(get_chatbot_engine),
):
    if not engine.store.clear_context(user.user_id):
        raise _not_found()


@conversations_router.get("/stats", response_model=StatsOut)
async def stats(engine: ChatbotEngine = Depends(get_chatbot_engine)):
    return StatsOut(
        active_session_count=engine.store.active_session_count(),
        total_sessions=len(engine.store),
    )

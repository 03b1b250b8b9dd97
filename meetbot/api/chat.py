"""
Chat API.

POST /v1/chat — one user message in, one bot reply out
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_chatbot_engine, get_user
from ..core.errors import CallerContractError
from ..orchestrator.orchestrator import ChatbotEngine

logger = logging.getLogger(__name__)

chat_router = APIRouter(tags=["chat"])


class ChatRequest(BaseModel):
    message: str = ""
    timezone: Optional[str] = Field(default=None, description="IANA zone, e.g. America/New_York")


class ChatResponse(BaseModel):
    success: bool
    session_id: str
    message: str
    intent: str
    confidence: float
    entities: dict[str, str] = {}
    user_id: str = ""
    needs_input: Optional[str] = None


@chat_router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user: AuthenticatedUser = Depends(get_user),
    engine: ChatbotEngine = Depends(get_chatbot_engine),
):
    """Send a message to the assistant."""
    try:
        result = await engine.process_message(user.user_id, request.message, request.timezone)
    except CallerContractError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ChatResponse(**result.to_dict())

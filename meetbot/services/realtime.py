"""
Realtime notifications. Thin wrapper around core.redis.
Provides typed event helpers for the chat loop and session lifecycle.
"""

from ..core import redis as _redis


# ── Chat events ──────────────────────────────────────────────────────

async def chat_completed(user_id: str, session_id: str, data: dict = None):
    await _redis.notify_session(user_id, session_id, "chat.completed", data)


async def chat_error(user_id: str, session_id: str, data: dict = None):
    await _redis.notify_session(user_id, session_id, "chat.error", data)


# ── Session events ───────────────────────────────────────────────────

async def session_ended(user_id: str, session_id: str):
    await _redis.notify_user(user_id, "session.ended", {"session_id": session_id})


async def sessions_swept(count: int):
    await _redis.broadcast("session.swept", {"removed": count})

"""
Redis pub/sub publisher for conversation events. Controlled by FF_USE_REDIS.

Channels:
  user:{user_id}                  — events about one user's sessions
  session:{user_id}:{session_id}  — per-turn events of one session
  sessions                        — store-wide housekeeping events

Every payload is a JSON envelope: {"type": ..., "data": ..., "ts": <unix seconds>}.
Publishing is best effort; the conversation never waits on a failed publish.
"""

import json
import logging
import time
from typing import Any

import redis.asyncio as aioredis

from .config import get_settings
from .flags import get_flags

logger = logging.getLogger(__name__)

BROADCAST_CHANNEL = "sessions"

_redis_client = None


def _get_redis():
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(
            get_settings().redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
        )
    return _redis_client


def envelope(event_type: str, data: Any = None) -> str:
    return json.dumps({"type": event_type, "data": data, "ts": round(time.time(), 3)})


async def publish(channel: str, event_type: str, data: Any = None) -> bool:
    """True if the event was handed to Redis. Always False with the flag off."""
    if not get_flags().use_redis:
        return False

    try:
        await _get_redis().publish(channel, envelope(event_type, data))
    except Exception as e:
        logger.warning("Redis publish %s on %s failed: %s", event_type, channel, e)
        return False
    return True


async def notify_user(user_id: str, event_type: str, data: Any = None) -> bool:
    return await publish(f"user:{user_id}", event_type, data)


async def notify_session(user_id: str, session_id: str, event_type: str, data: Any = None) -> bool:
    return await publish(f"session:{user_id}:{session_id}", event_type, data)


async def broadcast(event_type: str, data: Any = None) -> bool:
    return await publish(BROADCAST_CHANNEL, event_type, data)


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection closed")

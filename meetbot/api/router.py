"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter, Depends

from ..core.dependencies import get_user

router = APIRouter()


# ── Health (no auth) ─────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "meetbot"}


# ── Auth config (no auth) ───────────────────────────────────────────

@router.get("/auth/config")
async def auth_config():
    from ..core.flags import get_flags

    flags = get_flags()
    if not flags.use_auth:
        return {"auth_enabled": False, "message": "Dev mode, no auth required"}
    return {"auth_enabled": True, "scheme": "Bearer"}


# ── V1 routes (auth required) ───────────────────────────────────────

from .chat import chat_router
from .conversations import conversations_router

router.include_router(chat_router, prefix="/v1", dependencies=[Depends(get_user)])
router.include_router(conversations_router, prefix="/v1", dependencies=[Depends(get_user)])

"""
FastAPI dependencies. Injected into route handlers.
"""

from fastapi import Header, HTTPException, status

from .auth import AuthenticatedUser, get_current_user


async def get_user(
    authorization: str = Header(default=""),
) -> AuthenticatedUser:
    """
    Resolve authenticated user from Authorization header.
    Returns dev user if FF_USE_AUTH=false.
    """
    try:
        return await get_current_user(authorization)
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_chatbot_engine():
    """Returns the process-wide dialogue engine."""
    from ..orchestrator.orchestrator import get_engine
    return get_engine()

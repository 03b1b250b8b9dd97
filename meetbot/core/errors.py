"""
Error taxonomy shared by the dialogue engine and the action providers.

  CallerContractError   — programming error in the caller. Raised, never recovered.
  SessionStateError     — illegal session transition or write to a terminal session.
  ActionProviderError   — the remote action failed. Recovered at the handler boundary.
"""

from typing import Optional


class CallerContractError(ValueError):
    """A required argument was blank or out of range."""


class SessionStateError(RuntimeError):
    """A session was asked to do something its status does not allow."""


class ActionProviderError(Exception):
    """Typed failure from an action provider."""

    category = "other"

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or self.category)
        self.status_code = status_code


class NotFoundError(ActionProviderError):
    category = "not_found"


class UnauthorizedError(ActionProviderError):
    category = "unauthorized"


class TransientError(ActionProviderError):
    category = "transient"


class ActionFailedError(ActionProviderError):
    category = "other"


_AUTH_KEYWORDS = ("unauthorized", "401", "invalid_client", "authentication", "access token")


def is_auth_failure(exc: BaseException) -> bool:
    """True for credential-shaped failures, typed or not."""
    if isinstance(exc, UnauthorizedError):
        return True
    text = str(exc).lower()
    return any(k in text for k in _AUTH_KEYWORDS)

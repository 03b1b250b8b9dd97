"""
Credential providers. Hand the action provider a token for a user on demand.

The dialogue engine never sees or stores the token itself.
"""

import logging

from ..core.errors import UnauthorizedError

logger = logging.getLogger(__name__)


class CredentialProvider:
    """Base class. Subclass and implement get_credential()."""

    async def get_credential(self, user_id: str) -> str:
        raise NotImplementedError


class StaticCredentialProvider(CredentialProvider):
    """One server-to-server token shared by every user (Zoom S2S OAuth style)."""

    def __init__(self, token: str):
        self._token = token or ""

    async def get_credential(self, user_id: str) -> str:
        if not self._token.strip():
            logger.error("No access token configured (user=%s)", user_id)
            raise UnauthorizedError("No access token configured")
        return self._token


class LocalCredentialProvider(CredentialProvider):
    """Used with the in-memory provider. Every user gets a token named after them."""

    async def get_credential(self, user_id: str) -> str:
        return f"local:{user_id}"

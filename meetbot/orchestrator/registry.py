"""
Handler registry. Register handlers by intent and look them up.
"""

import logging
from typing import Optional

from ..core.config import Settings
from ..models.intent import Intent
from ..nlu.entities import EntityExtractor
from ..services.actions import ActionProvider
from ..services.credentials import CredentialProvider
from .base_handler import BaseHandler

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Central registry for all intent handlers."""

    def __init__(self):
        self._handlers: dict[Intent, BaseHandler] = {}

    def register(self, handler: BaseHandler) -> None:
        """Register a handler by its intent."""
        if handler.intent in self._handlers:
            logger.warning("Handler for '%s' already registered, overwriting", handler.intent.name)
        self._handlers[handler.intent] = handler
        logger.debug(
            "Registered handler: %s (%s) %s", handler.intent.name, type(handler).__name__, handler.description,
        )

    def get(self, intent: Intent) -> Optional[BaseHandler]:
        """Get the handler for an intent. Returns None if not found."""
        return self._handlers.get(intent)

    def get_intents(self) -> list[Intent]:
        return list(self._handlers.keys())


def build_registry(
    provider: ActionProvider,
    credentials: CredentialProvider,
    extractor: EntityExtractor,
    settings: Optional[Settings] = None,
) -> HandlerRegistry:
    """One handler per intent, all sharing the same provider and extractor."""
    from ..handlers.general import GreetingHandler, HelpHandler, UnknownHandler
    from ..handlers.meetings import (
        DeleteMeetingHandler,
        GetMeetingHandler,
        ListMeetingsHandler,
        ScheduleMeetingHandler,
        UpdateMeetingHandler,
    )
    from ..handlers.recordings import (
        DownloadRecordingHandler,
        GetRecordingHandler,
        ListRecordingsHandler,
    )
    from ..handlers.users import CreateUserHandler, GetUserHandler, ListUsersHandler

    default_duration = settings.default_meeting_duration if settings else 60
    deps = {"provider": provider, "credentials": credentials, "extractor": extractor}

    registry = HandlerRegistry()
    registry.register(GreetingHandler(**deps))
    registry.register(HelpHandler(**deps))
    registry.register(UnknownHandler(**deps))
    registry.register(ScheduleMeetingHandler(default_duration=default_duration, **deps))
    for handler_cls in (
        ListMeetingsHandler, GetMeetingHandler, UpdateMeetingHandler, DeleteMeetingHandler,
        ListRecordingsHandler, GetRecordingHandler, DownloadRecordingHandler,
        GetUserHandler, ListUsersHandler, CreateUserHandler,
    ):
        registry.register(handler_cls(**deps))

    logger.info(
        "Handler registry ready: %d handlers [%s]",
        len(registry.get_intents()),
        ", ".join(i.name for i in registry.get_intents()),
    )
    return registry

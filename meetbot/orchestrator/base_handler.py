"""
BaseHandler — every intent handler implements this interface.

No frameworks. Just a class with a handle() method.
Supports:
  - Provider dispatch bounded by a per-turn deadline
  - Slot filling across turns (SlotFillingHandler)
  - Uniform failure messages for typed provider errors
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Optional

from ..core.errors import ActionProviderError, NotFoundError, TransientError, is_auth_failure
from ..models.intent import Intent
from ..models.session import Session
from ..nlu.entities import EntityExtractor
from ..services.actions import ActionProvider
from ..services.credentials import CredentialProvider

logger = logging.getLogger(__name__)

# Context key naming the write intent that is waiting for a reply
PENDING_INTENT = "pendingIntent"

AUTH_FAILURE_MESSAGE = (
    "Zoom API authentication failed. Please check your Zoom API credentials.\n\n"
    "The application may be using invalid or mock credentials. "
    "Check the application logs for configuration details."
)


class HandlerStatus(str, Enum):
    """Where a handler left the conversation."""
    COMPLETE = "complete"
    NEEDS_INPUT = "needs_input"
    INVALID_INPUT = "invalid_input"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class HandlerResponse:
    """What a handler returns after handling a message."""

    content: str = ""                                   # Text reply to user
    status: HandlerStatus = HandlerStatus.COMPLETE
    needs_input: Optional[str] = None                   # Slot name the bot asked for
    metadata: dict = field(default_factory=dict)        # Observability data

    @property
    def success(self) -> bool:
        return self.status is not HandlerStatus.FAILED


@dataclass
class Turn:
    """Everything a handler may read about the current message."""

    user_id: str
    message: str                                        # Sanitized text
    entities: dict[str, str]
    session: Session
    today: date                                         # In the user's zone
    timeout: Optional[float] = None                     # Dispatch deadline, seconds

    @property
    def timezone(self) -> Optional[str]:
        return self.session.get_value("timezone")


class BaseHandler:
    """
    Base class for all handlers. Subclass and implement handle().

    Attributes:
        intent:       The intent this handler serves
        description:  What it does (logged at registration)
    """

    intent: Intent = Intent.UNKNOWN
    description: str = ""

    def __init__(
        self,
        provider: Optional[ActionProvider] = None,
        credentials: Optional[CredentialProvider] = None,
        extractor: Optional[EntityExtractor] = None,
    ):
        self.provider = provider
        self.credentials = credentials
        self.extractor = extractor or EntityExtractor()

    async def handle(self, turn: Turn) -> HandlerResponse:
        raise NotImplementedError(f"Handler '{self.intent.name}' must implement handle()")

    async def dispatch(self, turn: Turn, params: dict, intent: Optional[Intent] = None) -> Any:
        """
        Call the action provider within the turn's deadline.
        A deadline overrun is reported as a TransientError.
        """
        intent = intent or self.intent

        async def _call():
            credential = ""
            if intent.requires_authentication:
                credential = await self.credentials.get_credential(turn.user_id)
            return await self.provider.perform(intent, params, credential)

        try:
            if turn.timeout:
                return await asyncio.wait_for(_call(), timeout=turn.timeout)
            return await _call()
        except asyncio.TimeoutError:
            logger.warning("Dispatch %s timed out after %.1fs", intent.name, turn.timeout)
            raise TransientError(f"{intent.name} timed out after {turn.timeout}s")

    def failure_message(self, exc: ActionProviderError, action: str, not_found: str = "") -> str:
        """User-facing text for a provider failure. Logs the typed category."""
        logger.warning(
            "%s failed [%s]: %s", self.intent.name, exc.category, exc,
        )
        if is_auth_failure(exc):
            return AUTH_FAILURE_MESSAGE
        if isinstance(exc, NotFoundError) and not_found:
            return not_found
        return f"Sorry, I couldn't {action} right now. Please try again later."


# ── Slot filling ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Slot:
    """One parameter a write handler collects before it can act."""

    name: str                                           # Entity key ("date") or handler-defined
    context_key: str                                    # Where the value lives between turns
    question: str                                       # Asked when the slot is missing
    required: bool = True


INVALID_ENTITY_QUESTIONS = {
    "date": "That date is in the past. What date would you like? "
            "(e.g., 'tomorrow', '2024-01-15', or 'next Monday')",
    "time": "I couldn't read that time. What time works for you? "
            "(e.g., '2pm', '14:00', or '2:30pm')",
    "duration": "Meetings can run from {min} to {max} minutes. How long should it be?",
}


class SlotFillingHandler(BaseHandler):
    """
    Write-intent protocol:
      1. Store this message's valid entity values under the handler's context keys.
      2. Answer an invalid entity with a targeted question for that slot only.
      3. Ask for the first missing required slot, one question per turn.
      4. Dispatch once everything is present, then clear the consumed keys
         whether the action succeeded or failed.
    """

    slots: tuple[Slot, ...] = ()

    @property
    def context_keys(self) -> tuple[str, ...]:
        return tuple(s.context_key for s in self.slots)

    async def handle(self, turn: Turn) -> HandlerResponse:
        invalid = self.invalid_slots(turn)
        if invalid:
            accepted = {k: v for k, v in turn.entities.items() if k not in invalid}
            self.remember(replace(turn, entities=accepted))
            turn.session.set_value(PENDING_INTENT, self.intent.value)
            return HandlerResponse(
                content=self.invalid_question(invalid[0]),
                status=HandlerStatus.INVALID_INPUT,
                needs_input=invalid[0],
            )

        self.remember(turn)

        missing = self.missing_slot(turn)
        if missing is not None:
            turn.session.set_value(PENDING_INTENT, self.intent.value)
            logger.info("%s waiting for slot '%s'", self.intent.name, missing.name)
            return HandlerResponse(
                content=missing.question,
                status=HandlerStatus.NEEDS_INPUT,
                needs_input=missing.name,
            )

        values = {k: turn.session.get_value(k) for k in self.context_keys}
        try:
            return await self.execute(turn, values)
        except ActionProviderError as e:
            return HandlerResponse(
                content=self.describe_failure(e),
                status=HandlerStatus.FAILED,
                metadata={"error": e.category},
            )
        except ValueError as e:
            # Stored values that no longer parse; start over rather than loop
            logger.warning("%s could not build request: %s", self.intent.name, e)
            return HandlerResponse(
                content=f"Some of the details didn't make sense ({e}). Let's start over.",
                status=HandlerStatus.FAILED,
                metadata={"error": "invalid_parameters"},
            )
        finally:
            # Consumed on every outcome, including faults that escape to the engine
            self.reset(turn.session)

    def invalid_slots(self, turn: Turn) -> list[str]:
        names = {s.name for s in self.slots}
        relevant = {k: v for k, v in turn.entities.items() if k in names}
        return self.extractor.invalid_entities(relevant, turn.today)

    def invalid_question(self, name: str) -> str:
        cfg = self.extractor.config
        template = INVALID_ENTITY_QUESTIONS.get(name, "I couldn't use that {name}. Could you try again?")
        return template.format(min=cfg.min_duration_minutes, max=cfg.max_duration_minutes, name=name)

    def remember(self, turn: Turn) -> None:
        """Copy this message's entities into the handler's context keys."""
        for slot in self.slots:
            value = turn.entities.get(slot.name)
            if value is not None:
                turn.session.set_value(slot.context_key, value)

    def missing_slot(self, turn: Turn) -> Optional[Slot]:
        for slot in self.slots:
            if slot.required and not turn.session.has_value(slot.context_key):
                return slot
        return None

    def reset(self, session: Session) -> None:
        """Forget everything this handler collected, and the pending marker."""
        if session.is_active():
            session.remove_values(PENDING_INTENT, *self.context_keys)

    async def execute(self, turn: Turn, values: dict[str, Optional[str]]) -> HandlerResponse:
        raise NotImplementedError(f"Handler '{self.intent.name}' must implement execute()")

    def describe_failure(self, exc: ActionProviderError) -> str:
        return self.failure_message(exc, "complete that request")

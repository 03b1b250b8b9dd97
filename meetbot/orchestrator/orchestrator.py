"""
Main dialogue loop.

Receive message → sanitize → classify + extract → route → handle → respond.

One user's turns run strictly one at a time (per-user asyncio lock);
different users never wait on each other. No exception escapes
process_message except a caller contract violation (blank user ID).
"""

import asyncio
import logging
import time
import weakref
from typing import Optional

from ..core.config import Settings, get_settings
from ..core.errors import CallerContractError
from ..core.guardrails import for_log, sanitize_input
from ..models.chat import ChatResponse
from ..models.intent import Intent
from ..nlu import timezones
from ..nlu.classifier import ClassifierConfig, IntentClassifier
from ..nlu.entities import EntityExtractor, ExtractorConfig
from ..services import realtime
from ..services.actions import get_action_provider, get_credential_provider
from .base_handler import PENDING_INTENT, HandlerResponse, HandlerStatus, SlotFillingHandler, Turn
from .registry import HandlerRegistry, build_registry
from .router import RouteAction, RouteDecision, route
from .session_store import SessionStore

logger = logging.getLogger(__name__)

EMPTY_MESSAGE_TEXT = "I didn't receive any message. Could you please type something?"
GENERIC_ERROR_TEXT = "I encountered an error processing your message. Please try again."
CANCELLED_TEXT = "Okay, I've dropped that. What would you like to do next?"


def _clarify_text(intent: Intent) -> str:
    return (
        "I'm not entirely sure I understood that correctly. "
        f"Did you want to {intent.description.lower()}?"
    )


class ChatbotEngine:
    """Owns the per-message control loop. Collaborators are injected."""

    def __init__(
        self,
        store: SessionStore,
        classifier: IntentClassifier,
        extractor: EntityExtractor,
        registry: HandlerRegistry,
        confidence_threshold: float = 0.6,
        max_input_length: int = 1000,
        action_timeout: Optional[float] = 15.0,
        max_log_message_length: int = 100,
    ):
        self.store = store
        self.classifier = classifier
        self.extractor = extractor
        self.registry = registry
        self.confidence_threshold = confidence_threshold
        self.max_input_length = max_input_length
        self.action_timeout = action_timeout
        self.max_log_message_length = max_log_message_length
        self._user_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @classmethod
    def from_settings(cls, settings: Settings, provider=None, credentials=None, store=None) -> "ChatbotEngine":
        extractor = EntityExtractor(ExtractorConfig.from_settings(settings))
        registry = build_registry(
            provider or get_action_provider(),
            credentials or get_credential_provider(),
            extractor,
            settings,
        )
        return cls(
            store=store or SessionStore.from_settings(settings),
            classifier=IntentClassifier(ClassifierConfig.from_settings(settings)),
            extractor=extractor,
            registry=registry,
            confidence_threshold=settings.confidence_threshold,
            max_input_length=settings.max_input_length,
            action_timeout=settings.action_timeout_seconds,
            max_log_message_length=settings.max_log_message_length,
        )

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[user_id] = lock
        return lock

    # ── Entry point ──────────────────────────────────────────────────

    async def process_message(
        self,
        user_id: str,
        text: Optional[str],
        timezone: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> ChatResponse:
        """
        Handle one user message and return the bot's reply.

        Args:
            user_id:   Stable external identity. Blank → CallerContractError.
            text:      Raw user text. Blank → friendly prompt, no state change.
            timezone:  IANA zone ID; stored in the session when it names a real zone.
            timeout:   Deadline in seconds for the provider call, if any.
        """
        if not user_id or not user_id.strip():
            raise CallerContractError("user_id is required")

        start = time.monotonic()
        async with self._lock_for(user_id):
            try:
                response = await self._turn(user_id, text, timezone, timeout)
            except Exception as e:
                logger.exception("Unhandled error processing message for user=%s: %s", user_id, e)
                response = ChatResponse(
                    success=False,
                    session_id=self._session_id_for(user_id),
                    message=GENERIC_ERROR_TEXT,
                    user_id=user_id,
                )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        event = {"intent": response.intent.value, "elapsed_ms": elapsed_ms}
        if response.success:
            await realtime.chat_completed(user_id, response.session_id, event)
        else:
            await realtime.chat_error(user_id, response.session_id, event)
        return response

    def _session_id_for(self, user_id: str) -> str:
        try:
            session = self.store.get_current(user_id)
        except CallerContractError:
            return ""
        return session.session_id if session else ""

    # ── One turn ─────────────────────────────────────────────────────

    async def _turn(
        self,
        user_id: str,
        text: Optional[str],
        zone_id: Optional[str],
        timeout: Optional[float],
    ) -> ChatResponse:
        cleaned = sanitize_input(text or "", self.max_input_length, user_id).text
        if not cleaned:
            return ChatResponse(
                success=True,
                session_id=self._session_id_for(user_id),
                message=EMPTY_MESSAGE_TEXT,
                user_id=user_id,
            )

        session = self.store.get_or_create(user_id)
        if timezones.is_valid_zone(zone_id):
            session.set_value("timezone", zone_id.strip())

        classification = self.classifier.classify(cleaned)
        today = timezones.today(session.get_value("timezone"), self.store.now())
        entities = self.extractor.extract(cleaned, today)

        decision = route(cleaned, classification, session, self.classifier, self.confidence_threshold)
        self.store.record_intent(session.session_id, classification.intent)
        count = self.store.update_activity(session.session_id)

        logger.info(
            "Turn #%d user=%s session=%s intent=%s confidence=%.2f action=%s text=%s",
            count, user_id, session.session_id, decision.intent.name, decision.confidence,
            decision.action.value, for_log(cleaned, self.max_log_message_length),
        )

        if decision.action is RouteAction.CLARIFY:
            result = HandlerResponse(content=_clarify_text(decision.intent))
        elif decision.action is RouteAction.CANCEL:
            result = self._cancel(decision, session)
        else:
            result = await self._dispatch(decision, user_id, cleaned, entities, session, today, timeout)

        return ChatResponse(
            success=result.success,
            session_id=session.session_id,
            message=result.content,
            intent=decision.intent,
            confidence=decision.confidence,
            entities=entities,
            user_id=user_id,
            needs_input=result.needs_input,
        )

    def _cancel(self, decision: RouteDecision, session) -> HandlerResponse:
        handler = self.registry.get(decision.intent)
        if isinstance(handler, SlotFillingHandler):
            handler.reset(session)
        else:
            session.remove_values(PENDING_INTENT)
        return HandlerResponse(content=CANCELLED_TEXT, status=HandlerStatus.CANCELLED)

    async def _dispatch(self, decision, user_id, message, entities, session, today, timeout) -> HandlerResponse:
        handler = self.registry.get(decision.intent) or self.registry.get(Intent.UNKNOWN)
        turn = Turn(
            user_id=user_id,
            message=message,
            entities=entities,
            session=session,
            today=today,
            timeout=timeout if timeout is not None else self.action_timeout,
        )
        result = await handler.handle(turn)

        details = " ".join(f"{k}={v}" for k, v in sorted(result.metadata.items()))
        if decision.intent.is_write_operation and result.status in (HandlerStatus.COMPLETE, HandlerStatus.FAILED):
            logger.info(
                "AUDIT intent=%s user=%s session=%s outcome=%s %s",
                decision.intent.name, user_id, session.session_id, result.status.value, details,
            )
        else:
            logger.debug("%s handled: status=%s %s", decision.intent.name, result.status.value, details)
        return result


# ── Global engine ────────────────────────────────────────────────────

_engine: Optional[ChatbotEngine] = None


def get_engine() -> ChatbotEngine:
    """Get or create the global engine."""
    global _engine
    if _engine is None:
        _engine = ChatbotEngine.from_settings(get_settings())
    return _engine

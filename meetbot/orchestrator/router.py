"""
Message router.

Decides, per message, what the engine should do with a classification:

  1. A slot-filling flow is pending and the user wants out → CANCEL.
  2. A slot-filling flow is pending and the reply matched no intent
     ("tomorrow", "2pm", "2") → continue the pending intent.
  3. A guessed intent below the confidence threshold → CLARIFY.
  4. Everything else → DISPATCH to the classified intent.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models.chat import ClassificationResult
from ..models.intent import Intent
from ..models.session import Session
from ..nlu.classifier import IntentClassifier
from .base_handler import PENDING_INTENT

logger = logging.getLogger(__name__)

# Phrases that signal the user wants to abandon the current flow
_EXIT_PATTERNS = re.compile(
    r"\b("
    r"cancel|stop|quit|exit|abort|"
    r"never ?mind|nevermind|forget it|forget about it|"
    r"start over|no thanks|"
    r"i[' ]?m done|that[' ]?s enough"
    r")\b",
    re.IGNORECASE,
)


def _is_exit_intent(message: str) -> bool:
    """Check if the user wants to exit the current flow."""
    # Only short messages; a longer request that happens to contain 'stop' is not an exit
    if len(message) > 100:
        return False
    return bool(_EXIT_PATTERNS.search(message))


class RouteAction(str, Enum):
    DISPATCH = "dispatch"
    CLARIFY = "clarify"
    CANCEL = "cancel"


@dataclass(frozen=True)
class RouteDecision:
    action: RouteAction
    intent: Intent
    confidence: float


def pending_intent(session: Session) -> Optional[Intent]:
    value = session.get_value(PENDING_INTENT)
    if not value:
        return None
    try:
        return Intent(value)
    except ValueError:
        logger.warning("Ignoring unknown pending intent %r", value)
        return None


def route(
    message: str,
    classification: ClassificationResult,
    session: Session,
    classifier: IntentClassifier,
    confidence_threshold: float,
) -> RouteDecision:
    """Pure decision. Never mutates the session except to drop a stale pending marker."""
    pending = pending_intent(session)
    intent, confidence = classification.intent, classification.confidence

    if pending is not None and intent is Intent.UNKNOWN:
        if _is_exit_intent(message):
            logger.info("Router: exit requested, abandoning %s", pending.name)
            return RouteDecision(RouteAction.CANCEL, pending, classifier.confidence_for(message))
        logger.info("Router: follow-up reply → pending %s", pending.name)
        return RouteDecision(RouteAction.DISPATCH, pending, classifier.confidence_for(message))

    if pending is not None and intent is not pending and confidence >= confidence_threshold:
        # New confident request; collected slot values stay for a later return
        logger.info("Router: %s replaces pending %s", intent.name, pending.name)
        session.remove_values(PENDING_INTENT)

    if intent is not Intent.UNKNOWN and confidence < confidence_threshold:
        logger.info("Router: low confidence %.2f for %s → clarify", confidence, intent.name)
        return RouteDecision(RouteAction.CLARIFY, intent, confidence)

    return RouteDecision(RouteAction.DISPATCH, intent, confidence)

"""
Intent classifier — deterministic pattern matching.

The pattern table is evaluated top to bottom and the first intent with a
matching pattern wins, so table order is part of the behaviour: destructive
and more specific intents come before the broad ones they overlap with
("cancel the meeting" must not become GET_MEETING, "what meetings do I have
today" must not become SCHEDULE_MEETING).

Confidence is a word-count heuristic, not a measure of match quality.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..core.config import Settings
from ..core.guardrails import for_log
from ..models.chat import ClassificationResult
from ..models.intent import Intent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifierConfig:
    short_message_words: int = 5
    medium_message_words: int = 10
    short_message_confidence: float = 0.95
    medium_message_confidence: float = 0.85
    long_message_confidence: float = 0.75
    low_confidence_warning_threshold: float = 0.6
    max_log_message_length: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClassifierConfig":
        return cls(
            short_message_words=settings.short_message_words,
            medium_message_words=settings.medium_message_words,
            short_message_confidence=settings.short_message_confidence,
            medium_message_confidence=settings.medium_message_confidence,
            long_message_confidence=settings.long_message_confidence,
            low_confidence_warning_threshold=settings.low_confidence_warning_threshold,
            max_log_message_length=settings.max_log_message_length,
        )


def _compile(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p) for p in patterns)


# ── Pattern table ────────────────────────────────────────────────────
# Input is lower-cased before matching.

INTENT_PATTERNS: tuple[tuple[Intent, tuple[re.Pattern, ...]], ...] = (
    (Intent.DELETE_MEETING, _compile(
        r"\b(cancel|delete|remove).*\b(meeting|call)\b",
        r"\bdrop.*\b(meeting|call)\b",
    )),
    (Intent.UPDATE_MEETING, _compile(
        r"\b(update|modify|change|reschedule|edit).*\b(meeting|call)\b",
        r"\bmove.*\b(meeting|call)\b",
        r"\bchange.*\b(time|date).*\b(meeting|call)\b",
    )),
    (Intent.LIST_RECORDINGS, _compile(
        r"\b(list|show|get|display|view).*\b(recordings|videos)\b",
        r"\b(my|recent|all).*\b(recordings|videos)\b",
        r"\bwhat.*\b(recordings|videos)\b",
    )),
    (Intent.GET_RECORDING, _compile(
        r"\b(get|show|find|details).*\b(recording|video)\b(?!s\b)",
        r"\brecording (details|info|information)\b",
    )),
    (Intent.DOWNLOAD_RECORDING, _compile(
        r"\b(download|get|fetch).*\b(recording|video)\b",
        r"\bsave.*\b(recording|video)\b",
    )),
    (Intent.LIST_MEETINGS, _compile(
        r"\b(list|show|get|display|view).*\b(meetings|calls|conferences)\b",
        r"\b(my|upcoming|today's|this week's).*\b(meetings|calls)\b",
        r"\bwhat.*\b(meetings|calls)\b",
    )),
    (Intent.GET_MEETING, _compile(
        r"\b(get|show|find|details|info).*\b(meeting|call)\b(?!s\b)",
        r"\btell me about.*\b(meeting|call)\b",
        r"\bmeeting (details|info|information)\b",
    )),
    (Intent.SCHEDULE_MEETING, _compile(
        r"\b(schedule|create|set up|arrange|book).*\b(meeting|call|conference)\b",
        r"\b(meeting|call).*\b(tomorrow|today|next|on)\b",
        r"\b(schedule|create|setup).*\b(zoom|video call)\b",
    )),
    (Intent.LIST_USERS, _compile(
        r"\b(list|show|get|display|view).*\busers\b",
        r"\ball users\b",
        r"\buser (list|directory)\b",
    )),
    (Intent.GET_USER, _compile(
        r"\b(get|show|find|lookup).*\b(user|account|profile)\b(?!s\b)",
        r"\b(who is|user info|user details)\b",
        r"\btell me about.*\b(user|account)\b",
    )),
    (Intent.CREATE_USER, _compile(
        r"\b(create|add|new|provision).*\b(user|account)\b",
        r"\b(add|invite).*\b(someone|person|user)\b",
    )),
    (Intent.HELP, _compile(
        r"\b(help|what can you do|commands|assist)\b",
        r"\b(show|list) (commands|options|capabilities)\b",
    )),
    (Intent.GREETING, _compile(
        r"\b(hello|hi|hey|greetings|good morning|good afternoon)\b",
        r"^(yo|sup|what's up)\b",
    )),
)


class IntentClassifier:
    """Maps free text to (intent, confidence). Never raises."""

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        patterns: tuple[tuple[Intent, tuple[re.Pattern, ...]], ...] = INTENT_PATTERNS,
    ):
        self.config = config or ClassifierConfig()
        self._patterns = patterns
        logger.debug("Intent classifier ready with %d intents", len(patterns))

    def classify(self, text: Optional[str]) -> ClassificationResult:
        if not text or not text.strip():
            return ClassificationResult(Intent.UNKNOWN, 0.0)

        normalized = text.strip().lower()
        intent = self.match(normalized)
        if intent is None:
            logger.info("No intent matched for message: %s", self._log_text(normalized))
            return ClassificationResult(Intent.UNKNOWN, 0.0)

        confidence = self.confidence_for(normalized)
        logger.info("Intent classified: %s (confidence=%.2f)", intent.name, confidence)
        if confidence < self.config.low_confidence_warning_threshold:
            logger.warning(
                "Low confidence classification: %s for message: %s",
                intent.name, self._log_text(normalized),
            )
        return ClassificationResult(intent, confidence)

    def match(self, normalized: str) -> Optional[Intent]:
        """First intent in table order with any matching pattern."""
        for intent, patterns in self._patterns:
            if any(p.search(normalized) for p in patterns):
                return intent
        return None

    def confidence_for(self, text: str) -> float:
        """Shorter commands score higher."""
        cfg = self.config
        word_count = len(text.split())
        if word_count <= cfg.short_message_words:
            return cfg.short_message_confidence
        if word_count <= cfg.medium_message_words:
            return cfg.medium_message_confidence
        return cfg.long_message_confidence

    def _log_text(self, text: str) -> str:
        return for_log(text, self.config.max_log_message_length)

"""
Guardrails — input validation layer.

Every message passes through sanitize_input() before it reaches the
classifier or the entity extractor. Log-bound text passes through
for_log() so user input never spans multiple log lines.
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Control characters except \t (0x09), \n (0x0A), \r (0x0D)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


@dataclass
class GuardrailResult:
    """Result of a guardrail check."""
    text: str
    truncated: bool = False
    original_length: int = 0


# ── Input Guardrails ──────────────────────────────────────────────────

def sanitize_input(message: str, max_length: int = 1000, user_id: str = "") -> GuardrailResult:
    """
    Strip control characters, trim, and hard-truncate to max_length.
    Truncation is silent to the user but logged.
    """
    cleaned = _CONTROL_CHARS.sub("", message or "").strip()
    original_length = len(cleaned)

    if original_length > max_length:
        logger.warning(
            "Input truncated for user=%s: %d chars → %d",
            user_id, original_length, max_length,
        )
        return GuardrailResult(
            text=cleaned[:max_length],
            truncated=True,
            original_length=original_length,
        )

    return GuardrailResult(text=cleaned, original_length=original_length)


def for_log(message: str, max_length: int = 100) -> str:
    """Single-line, length-capped rendering of user text for log records."""
    if message is None:
        return "[null]"
    flat = message.replace("\r", " ").replace("\n", " ")
    if len(flat) > max_length:
        return flat[:max_length] + "..."
    return flat

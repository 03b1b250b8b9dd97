"""
Per-message value objects. Produced fresh each turn, never persisted.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..core.errors import CallerContractError
from .intent import Intent


@dataclass(frozen=True)
class ClassificationResult:
    intent: Intent
    confidence: float

    def __post_init__(self):
        if self.intent is None:
            raise CallerContractError("intent is required")
        if not 0.0 <= self.confidence <= 1.0:
            raise CallerContractError(f"confidence out of range: {self.confidence}")


@dataclass
class ChatResponse:
    """What the engine returns for one user message."""

    success: bool
    session_id: str
    message: str
    intent: Intent = Intent.UNKNOWN
    confidence: float = 0.0
    entities: dict[str, str] = field(default_factory=dict)
    user_id: str = ""
    needs_input: Optional[str] = None                   # Slot the bot asked for, if any

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "session_id": self.session_id,
            "message": self.message,
            "intent": self.intent.value,
            "confidence": self.confidence,
            "entities": dict(self.entities),
            "user_id": self.user_id,
            "needs_input": self.needs_input,
        }

"""
Conversation session — one per user, at most one ACTIVE at a time.

A Session guards its own fields with a per-instance lock. Readers outside
the store get copies from snapshot(), never the live record.
"""

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ..core.errors import CallerContractError, SessionStateError
from .intent import Intent


class SessionStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"
    TIMED_OUT = "timed_out"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


@dataclass
class Session:
    session_id: str
    user_id: str
    started_at: datetime
    last_activity_at: datetime
    status: SessionStatus = SessionStatus.ACTIVE
    ended_at: Optional[datetime] = None
    message_count: int = 0
    context: dict[str, str] = field(default_factory=dict)
    last_intent: Optional[Intent] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.session_id or not self.session_id.strip():
            raise CallerContractError("session_id is required")
        if not self.user_id or not self.user_id.strip():
            raise CallerContractError("user_id is required")

    @classmethod
    def create(cls, user_id: str, now: datetime) -> "Session":
        return cls(
            session_id=uuid.uuid4().hex,
            user_id=user_id,
            started_at=now,
            last_activity_at=now,
        )

    # ── Lifecycle ────────────────────────────────────────────────────

    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    def is_idle(self, now: datetime, timeout: timedelta) -> bool:
        """ACTIVE but untouched for at least `timeout`."""
        with self._lock:
            return self.status is SessionStatus.ACTIVE and now - self.last_activity_at >= timeout

    def transition(self, status: SessionStatus, now: datetime) -> None:
        """ACTIVE → ENDED | TIMED_OUT | ERROR. Terminal states are final."""
        with self._lock:
            if self.status.is_terminal:
                raise SessionStateError(
                    f"session {self.session_id} is already {self.status.value}"
                )
            if not status.is_terminal:
                raise SessionStateError("a session can only leave ACTIVE for a terminal status")
            self.status = status
            self.ended_at = now

    def terminal_for(self, now: datetime) -> Optional[timedelta]:
        """How long the session has been terminal, None while ACTIVE."""
        with self._lock:
            if not self.status.is_terminal:
                return None
            return now - (self.ended_at or self.last_activity_at)

    # ── Mutation (ACTIVE only) ───────────────────────────────────────

    def _require_active(self) -> None:
        if self.status.is_terminal:
            raise SessionStateError(
                f"session {self.session_id} is {self.status.value} and read-only"
            )

    def touch(self, now: datetime) -> int:
        """Count one processed message. Returns the new message count."""
        with self._lock:
            self._require_active()
            self.message_count += 1
            self.last_activity_at = max(self.last_activity_at, now)
            return self.message_count

    def record_intent(self, intent: Intent) -> None:
        with self._lock:
            self._require_active()
            self.last_intent = intent

    def set_value(self, key: str, value: str) -> None:
        with self._lock:
            self._require_active()
            self.context[key] = value

    def get_value(self, key: str) -> Optional[str]:
        with self._lock:
            return self.context.get(key)

    def has_value(self, key: str) -> bool:
        with self._lock:
            return key in self.context

    def remove_values(self, *keys: str) -> None:
        with self._lock:
            self._require_active()
            for key in keys:
                self.context.pop(key, None)

    def remove_prefix(self, prefix: str) -> None:
        with self._lock:
            self._require_active()
            for key in [k for k in self.context if k.startswith(prefix)]:
                del self.context[key]

    def clear_values(self) -> None:
        with self._lock:
            self._require_active()
            self.context.clear()

    # ── Observability ────────────────────────────────────────────────

    def snapshot(self) -> "Session":
        """Detached copy, safe to hand to other threads."""
        with self._lock:
            return replace(self, context=dict(self.context))

    def to_dict(self) -> dict:
        snap = self.snapshot()
        return {
            "session_id": snap.session_id,
            "user_id": snap.user_id,
            "status": snap.status.value,
            "started_at": snap.started_at.isoformat(),
            "last_activity_at": snap.last_activity_at.isoformat(),
            "ended_at": snap.ended_at.isoformat() if snap.ended_at else None,
            "message_count": snap.message_count,
            "last_intent": snap.last_intent.value if snap.last_intent else None,
            "context": snap.context,
        }

"""
In-memory session store, keyed by session ID with a user → current-session index.

Concurrency model:
  - One short-lived RLock guards the two maps (lookup, replace, remove).
  - Each Session guards its own fields with its own lock, so context writes
    for different users never contend.
  - Timeout is lazy: computed from timestamps on access. cleanup_inactive()
    is the only thing that deletes, and only removes entries that are still
    stale at the moment of removal.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..core.config import Settings
from ..core.errors import CallerContractError
from ..models.intent import Intent
from ..models.session import Session, SessionStatus

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require_user(user_id: str) -> None:
    if not user_id or not user_id.strip():
        raise CallerContractError("user_id is required")


class SessionStore:
    """Owns session creation, lazy timeout and garbage collection."""

    def __init__(
        self,
        timeout: timedelta = timedelta(minutes=30),
        retention: timedelta = timedelta(hours=1),
        clock: Clock = utc_now,
    ):
        self.timeout = timeout
        self.retention = retention
        self._clock = clock
        self._lock = threading.RLock()
        self._sessions: dict[str, Session] = {}
        self._by_user: dict[str, str] = {}

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utc_now) -> "SessionStore":
        return cls(
            timeout=timedelta(minutes=settings.session_timeout_minutes),
            retention=timedelta(minutes=settings.session_retention_minutes),
            clock=clock,
        )

    def now(self) -> datetime:
        return self._clock()

    # ── Lookup ───────────────────────────────────────────────────────

    def get_or_create(self, user_id: str) -> Session:
        """
        The user's live ACTIVE session. A timed-out one is marked TIMED_OUT
        (kept for audit until swept) and replaced by a fresh session.
        """
        _require_user(user_id)
        now = self.now()
        with self._lock:
            current = self._current(user_id)
            if current is not None and current.is_active():
                if not current.is_idle(now, self.timeout):
                    return current
                current.transition(SessionStatus.TIMED_OUT, now)
                logger.info(
                    "Session %s timed out for user=%s after %d messages",
                    current.session_id, user_id, current.message_count,
                )

            session = Session.create(user_id, now)
            self._sessions[session.session_id] = session
            self._by_user[user_id] = session.session_id
            logger.info("Created session %s for user=%s", session.session_id, user_id)
            return session

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def get_current(self, user_id: str) -> Optional[Session]:
        """The user's most recent session in any status, without creating one."""
        _require_user(user_id)
        with self._lock:
            return self._current(user_id)

    def _current(self, user_id: str) -> Optional[Session]:
        session_id = self._by_user.get(user_id)
        return self._sessions.get(session_id) if session_id else None

    def _active(self, user_id: str) -> Optional[Session]:
        session = self.get_current(user_id)
        if session is None or not session.is_active():
            return None
        return session

    # ── Per-turn mutation ────────────────────────────────────────────

    def update_activity(self, session_id: str) -> int:
        """Bump last activity and the message count. Returns the new count, 0 if swept."""
        session = self.get_by_id(session_id)
        if session is None:
            logger.warning("update_activity on unknown or swept session %s", session_id)
            return 0
        return session.touch(self.now())

    def record_intent(self, session_id: str, intent: Intent) -> None:
        session = self.get_by_id(session_id)
        if session is not None:
            session.record_intent(intent)

    # ── Context ──────────────────────────────────────────────────────

    def set_context(self, user_id: str, key: str, value: str) -> None:
        session = self.get_or_create(user_id)
        session.set_value(key, value)

    def get_context(self, user_id: str, key: str) -> Optional[str]:
        session = self._active(user_id)
        return session.get_value(key) if session else None

    def has_context(self, user_id: str, key: str) -> bool:
        session = self._active(user_id)
        return session.has_value(key) if session else False

    def clear_context(self, user_id: str) -> bool:
        """Drop every context key of the active session. False if there is none."""
        session = self._active(user_id)
        if session is None:
            return False
        session.clear_values()
        logger.info("Cleared context for session %s", session.session_id)
        return True

    # ── Lifecycle ────────────────────────────────────────────────────

    def end_session(self, user_id: str) -> Optional[Session]:
        """Mark the active session ENDED. The record is kept until swept."""
        _require_user(user_id)
        with self._lock:
            session = self._current(user_id)
            if session is None or not session.is_active():
                return None
            session.transition(SessionStatus.ENDED, self.now())
        logger.info(
            "Ended session %s for user=%s (%d messages)",
            session.session_id, user_id, session.message_count,
        )
        return session

    def _is_stale(self, session: Session, now: datetime) -> bool:
        if session.is_idle(now, self.timeout):
            return True
        terminal_for = session.terminal_for(now)
        return terminal_for is not None and terminal_for >= self.retention

    def cleanup_inactive(self) -> int:
        """
        Remove timed-out sessions and terminal sessions past retention.
        Safe against live traffic and against concurrent sweeps.
        """
        now = self.now()
        with self._lock:
            candidates = [s.session_id for s in self._sessions.values() if self._is_stale(s, now)]

        removed = 0
        for session_id in candidates:
            with self._lock:
                session = self._sessions.get(session_id)
                if session is None or not self._is_stale(session, now):
                    continue
                self._sessions.pop(session_id)
                if self._by_user.get(session.user_id) == session_id:
                    del self._by_user[session.user_id]
                removed += 1

        if removed:
            logger.info("Session sweep removed %d sessions (%d remain)", removed, len(self._sessions))
        return removed

    # ── Observability ────────────────────────────────────────────────

    def active_session_count(self) -> int:
        now = self.now()
        with self._lock:
            sessions = list(self._sessions.values())
        return sum(1 for s in sessions if s.is_active() and not s.is_idle(now, self.timeout))

    def all_sessions(self) -> list[Session]:
        """Snapshots. Mutating them does not touch the store."""
        with self._lock:
            sessions = list(self._sessions.values())
        return [s.snapshot() for s in sessions]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

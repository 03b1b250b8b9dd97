"""
Periodic session sweep. Controlled by FF_ENABLE_SESSION_SWEEPER.

Runs SessionStore.cleanup_inactive() on its own schedule. Timeouts are
still detected lazily on access; this only reclaims memory.
"""

import asyncio
import logging
from typing import Optional

from ..orchestrator.session_store import SessionStore
from . import realtime

logger = logging.getLogger(__name__)


class SessionSweeper:
    def __init__(self, store: SessionStore, interval_seconds: float = 300):
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        # cleanup_inactive takes a thread lock; keep it off the event loop
        removed = await asyncio.to_thread(self.store.cleanup_inactive)
        if removed:
            await realtime.sessions_swept(removed)
        return removed

    async def _run(self) -> None:
        logger.info("Session sweeper started (every %ss)", self.interval_seconds)
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception as e:
                # One failed sweep must not stop the next one
                logger.exception("Session sweep failed: %s", e)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="session-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session sweeper stopped")

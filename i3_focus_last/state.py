"""State manager for i3-focus-last.

Owns the focus history and the single lock guarding it. The i3 event
handler and every client connection task go through this class.
"""

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta
from time import monotonic
from typing import AsyncIterator, List, Optional, Tuple

from .constants import HISTORY_SIZE, MIN_FOCUS
from .history import FocusHistory
from .models import WindowRecord

logger = logging.getLogger(__name__)


class HistoryManager:
    """Manages the focus history with async-safe operations."""

    def __init__(self, max_size: int = HISTORY_SIZE, min_focus: timedelta = MIN_FOCUS) -> None:
        """Initialize history manager with empty history.

        Args:
            max_size: Maximum number of records kept
            min_focus: Debounce window for front record eviction
        """
        self.history = FocusHistory(max_size=max_size, min_focus=min_focus)
        self._lock = asyncio.Lock()

    @property
    def is_locked(self) -> bool:
        """True while a task holds exclusive access to the history."""
        return self._lock.locked()

    @contextlib.asynccontextmanager
    async def exclusive(self) -> AsyncIterator[FocusHistory]:
        """Hold exclusive access to the history for a multi-step operation.

        Example:
            async with manager.exclusive() as history:
                history.mark_pending_switch()
                await switch_to(history, 1, wm)
        """
        async with self._lock:
            yield self.history

    async def record_focus(self, window_id: int, now: Optional[datetime] = None) -> None:
        """Apply a window focus event.

        Args:
            window_id: Container ID of the focused window
            now: Event time (defaults to current time, debounced on the
                monotonic clock)
        """
        now, clock = _event_time(now)
        async with self._lock:
            self.history.on_focus(window_id, now, clock)
            logger.debug(f"Recorded focus of window {window_id}: {self.history.window_ids()[:5]}")

    async def seed(self, window_id: int, now: Optional[datetime] = None) -> bool:
        """Seed the history with the currently focused window.

        Returns:
            True if the history was seeded
        """
        now, clock = _event_time(now)
        async with self._lock:
            seeded = self.history.seed(window_id, now, clock)
        if seeded:
            logger.info(f"Seeded focus history with window {window_id}")
        return seeded

    async def snapshot(self) -> List[WindowRecord]:
        """Get a read-only copy of the history."""
        async with self._lock:
            return self.history.snapshot()


def _event_time(now: Optional[datetime]) -> Tuple[datetime, Optional[float]]:
    # Live events are debounced on the monotonic clock; explicit times are
    # compared as given.
    if now is None:
        return datetime.now(), monotonic()
    return now, None

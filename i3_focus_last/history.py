"""Focus history with debounce and toggle eviction policy.

The history is an ordered, bounded, deduplicated list of WindowRecords,
most recent first. It is not thread/task safe on its own; all access goes
through HistoryManager (state.py), which holds the one lock.

Policy applied on every focus event:
- A front window that held focus for less than MIN_FOCUS is dropped
  (focus flicker while moving across windows).
- Unless the front window was just switched away from by a switch command,
  in which case the marker is cleared and the window is kept. This makes
  repeated switches toggle between two windows.
"""

import dataclasses
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from .constants import HISTORY_SIZE, MIN_FOCUS
from .models import WindowRecord

logger = logging.getLogger(__name__)


class FocusHistory:
    """Most-recent-first window focus history."""

    def __init__(self, max_size: int = HISTORY_SIZE, min_focus: timedelta = MIN_FOCUS) -> None:
        """Initialize empty history.

        Args:
            max_size: Maximum number of records kept
            min_focus: Debounce window for front record eviction
        """
        if max_size < 1:
            raise ValueError(f"Invalid history size: {max_size}")

        self.max_size = max_size
        self.min_focus = min_focus
        self._records: List[WindowRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> WindowRecord:
        return self._records[index]

    @property
    def front(self) -> Optional[WindowRecord]:
        """Most recently focused record, or None if empty."""
        return self._records[0] if self._records else None

    def on_focus(self, window_id: int, now: datetime, clock: Optional[float] = None) -> None:
        """Apply one focus event to the history.

        Args:
            window_id: Container ID of the newly focused window
            now: Time the event was received
            clock: Monotonic seconds at the event (defaults to now as a timestamp)
        """
        record = WindowRecord(id=window_id, focused_at=now, clock=clock)

        front = self.front
        if front is not None:
            focused_for = record.clock - front.clock
            if front.just_switched:
                front.just_switched = False
            elif focused_for < self.min_focus.total_seconds():
                logger.debug(f"Dropping window {front.id} (focused for {focused_for:.2f}s)")
                self._records.pop(0)

        self._records = [r for r in self._records if r.id != window_id]
        self._records.insert(0, record)
        del self._records[self.max_size:]

    def mark_pending_switch(self) -> None:
        """Flag the front record as switched away from by a switch command."""
        front = self.front
        if front is not None:
            front.just_switched = True

    def clear_pending_switch(self) -> None:
        """Drop the switch flag when no focus request was issued."""
        front = self.front
        if front is not None:
            front.just_switched = False

    def seed(self, window_id: int, now: datetime, clock: Optional[float] = None) -> bool:
        """Install the currently focused window into an empty history.

        Returns:
            True if the history was seeded, False if it already had entries
        """
        if self._records:
            return False
        self._records.append(WindowRecord(id=window_id, focused_at=now, clock=clock))
        return True

    def snapshot(self) -> List[WindowRecord]:
        """Return copies of all records, most recent first."""
        return [dataclasses.replace(r) for r in self._records]

    def window_ids(self) -> List[int]:
        """Return window IDs, most recent first."""
        return [r.id for r in self._records]

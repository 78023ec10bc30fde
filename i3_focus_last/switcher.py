"""Switch focus to a window from the focus history.

Windows closed since they were recorded stay in the history; they are
skipped here when the window manager refuses to focus them.
"""

import logging

from .connection import WindowManagerClient
from .errors import TargetUnavailable
from .history import FocusHistory
from .models import WindowRecord

logger = logging.getLogger(__name__)


async def switch_to(history: FocusHistory, index: int, wm: WindowManagerClient) -> WindowRecord:
    """Focus the first window at or after a history index that still exists.

    Must be called with exclusive access to the history.

    Args:
        history: Focus history
        index: History index to start from (1 = previously focused window)
        wm: Window manager client

    Returns:
        The record that was focused

    Raises:
        TargetUnavailable: If no record at or after index could be focused
    """
    for position in range(index, len(history)):
        record = history[position]
        if await wm.focus(record.id):
            logger.info(f"Switched to window {record.id} (history index {position})")
            return record
        logger.debug(f"Skipping stale window {record.id} at history index {position}")

    raise TargetUnavailable(index)

"""Event handlers for i3 IPC events.

Feeds window focus events into the focus history and reacts to window
manager shutdown.
"""

import logging
from typing import Callable, Optional

from i3ipc import aio
from i3ipc.events import IpcBaseEvent, WindowEvent

from .connection import WindowManagerClient
from .state import HistoryManager

logger = logging.getLogger(__name__)


async def on_window_focus(
    conn: aio.Connection,
    event: WindowEvent,
    history_manager: HistoryManager,
) -> None:
    """Handle window::focus events - push the window to the front of the history.

    Args:
        conn: i3 async connection
        event: Window event
        history_manager: Focus history manager
    """
    change = getattr(event, "change", None)
    if change != "focus":
        # Only window::focus is registered; anything else is ignored
        logger.debug(f"Ignoring unexpected window event: {change}")
        return

    try:
        window_id = event.container.id
        await history_manager.record_focus(window_id)
    except Exception as e:
        logger.error(f"Error handling window::focus event: {e}", exc_info=True)


async def seed_focused_window(wm: WindowManagerClient, history_manager: HistoryManager) -> bool:
    """Seed the history with the window focused at startup.

    Best effort: any failure leaves the history empty.

    Returns:
        True if the history was seeded
    """
    try:
        window_id = await wm.get_focused_window_id()
    except Exception as e:
        logger.warning(f"Could not read focused window at startup: {e}")
        return False

    if window_id is None:
        logger.debug("No focused window at startup, history starts empty")
        return False

    return await history_manager.seed(window_id)


async def on_shutdown(
    conn: aio.Connection,
    event: IpcBaseEvent,
    shutdown_callback: Optional[Callable[[], None]] = None,
) -> None:
    """Handle i3 shutdown/restart events.

    Distinguishes between i3 restart (auto-reconnect) vs exit (shutdown daemon).

    Args:
        conn: i3 async connection
        event: Shutdown event from i3
        shutdown_callback: Called when the window manager exits
    """
    change = getattr(event, "change", None)

    if change == "restart":
        logger.info("Window manager is restarting - will auto-reconnect")
    elif change == "exit":
        logger.info("Window manager is exiting - shutting down daemon")
        if shutdown_callback:
            shutdown_callback()
    else:
        logger.warning(f"Unknown shutdown change: {change}")

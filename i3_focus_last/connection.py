"""i3/Sway IPC connection for i3-focus-last.

Wraps the two capabilities the daemon needs from the window manager: the
window focus event feed and the "focus window by container ID" command.
"""

import logging
from typing import Optional, Callable, Awaitable

from i3ipc import Event, aio
from i3ipc.events import IpcBaseEvent

from .errors import WindowManagerError

logger = logging.getLogger(__name__)

EventHandler = Callable[[aio.Connection, IpcBaseEvent], Awaitable[None]]

# Container types that hold a window (as opposed to workspaces/outputs)
WINDOW_CONTAINER_TYPES = ("con", "floating_con")


class WindowManagerClient:
    """Manages the i3 IPC connection used by the daemon."""

    def __init__(self, conn: Optional[aio.Connection] = None) -> None:
        """Initialize connection manager.

        Args:
            conn: Already connected i3ipc.aio.Connection (mainly for tests)
        """
        self.conn: Optional[aio.Connection] = conn
        self.is_shutting_down = False

    @property
    def is_connected(self) -> bool:
        """Check if i3 IPC connection is active."""
        return self.conn is not None and not self.is_shutting_down

    async def connect(self) -> aio.Connection:
        """Connect to i3/Sway.

        Returns:
            Connected i3ipc.aio.Connection

        Raises:
            WindowManagerError: If the IPC socket cannot be reached
        """
        try:
            self.conn = await aio.Connection(auto_reconnect=True).connect()
            version = await self.conn.get_version()
            logger.info(f"Connected to window manager version {version.human_readable}")
            return self.conn
        except Exception as e:
            self.conn = None
            raise WindowManagerError("connect", str(e)) from e

    def _require_conn(self, operation: str) -> aio.Connection:
        if not self.conn:
            raise WindowManagerError(operation, "not connected")
        return self.conn

    async def focus(self, window_id: int) -> bool:
        """Ask the window manager to focus a window.

        Args:
            window_id: Container ID to focus

        Returns:
            True if the window manager reported success
        """
        conn = self._require_conn("focus")
        replies = await conn.command(f"[con_id={window_id}] focus")
        if not replies:
            logger.warning(f"Focus command for window {window_id} returned empty result")
            return False

        reply = replies[0]
        if not reply.success:
            logger.debug(f"Focus command for window {window_id} failed: {getattr(reply, 'error', None)}")
        return bool(reply.success)

    async def get_focused_window_id(self) -> Optional[int]:
        """Get the container ID of the currently focused window.

        Returns:
            Container ID, or None if no window has focus (e.g. empty workspace)
        """
        conn = self._require_conn("get_tree")
        tree = await conn.get_tree()
        focused = tree.find_focused()
        if focused is None or focused.type not in WINDOW_CONTAINER_TYPES:
            return None
        return focused.id

    def on_window_focus(self, handler: EventHandler) -> None:
        """Register handler for window::focus events.

        i3ipc.aio subscribes to the base "window" event automatically.
        """
        self._require_conn("subscribe").on(Event.WINDOW_FOCUS, handler)
        logger.debug("Registered handler for window::focus events")

    def on_shutdown(self, handler: EventHandler) -> None:
        """Register handler for shutdown events."""
        self._require_conn("subscribe").on(Event.SHUTDOWN, handler)
        logger.debug("Registered handler for shutdown events")

    async def main(self) -> None:
        """Run the i3 async event loop.

        This blocks until the i3 connection is closed or the daemon shuts down.
        """
        conn = self._require_conn("main")
        try:
            await conn.main()
        except Exception as e:
            if not self.is_shutting_down:
                logger.error(f"i3 event loop error: {e}")
                raise
            logger.info("i3 event loop stopped (shutdown)")

    def close(self) -> None:
        """Stop the event loop and drop the i3 connection."""
        self.is_shutting_down = True
        if self.conn:
            self.conn.main_quit()
            self.conn = None
            logger.info("Closed i3 connection")

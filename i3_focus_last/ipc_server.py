"""Command server for i3-focus-last.

Line-oriented protocol over a UNIX socket. One command per connection:

    switch  -> focus the previously focused window; no reply
    debug   -> JSON dump of the focus history
    other   -> "Invalid command"

The connection is closed after the command is handled.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

from .connection import WindowManagerClient
from .constants import (
    CMD_DEBUG,
    CMD_SWITCH,
    INVALID_COMMAND_REPLY,
    SWITCH_TARGET_INDEX,
)
from .errors import TargetUnavailable
from .state import HistoryManager
from .switcher import switch_to

logger = logging.getLogger(__name__)


class CommandServer:
    """UNIX socket server for switch/debug commands."""

    def __init__(self, history_manager: HistoryManager, wm: WindowManagerClient) -> None:
        """Initialize command server.

        Args:
            history_manager: Shared focus history
            wm: Window manager client used by the switch command
        """
        self.history_manager = history_manager
        self.wm = wm
        self.socket_path: Optional[Path] = None
        self.server: Optional[asyncio.AbstractServer] = None
        self.clients: set[asyncio.StreamWriter] = set()

    async def start(self, socket_path: Path) -> None:
        """Start listening on socket_path.

        Raises:
            OSError: If the socket cannot be bound
        """
        socket_path.parent.mkdir(parents=True, exist_ok=True)

        if socket_path.exists():
            socket_path.unlink()

        self.server = await asyncio.start_unix_server(
            self._handle_client, path=str(socket_path)
        )
        self.socket_path = socket_path

        # Ensure socket is user-only accessible
        socket_path.chmod(0o600)

        logger.info(f"Command server listening on {socket_path} (permissions: 0600)")

    async def stop(self) -> None:
        """Stop server, close open connections and remove the socket file."""
        if self.server:
            self.server.close()

            # Server.wait_closed() waits for open client connections
            for writer in list(self.clients):
                writer.close()

            await self.server.wait_closed()
            self.server = None

        if self.socket_path and self.socket_path.exists():
            self.socket_path.unlink()

        logger.info("Command server stopped")

    async def _handle_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Handle a client connection.

        Args:
            reader: Stream reader for receiving the command
            writer: Stream writer for sending the reply
        """
        self.clients.add(writer)

        try:
            try:
                data = await reader.readline()
            except (ValueError, asyncio.LimitOverrunError) as e:
                # Line longer than the stream limit
                logger.debug(f"Rejecting oversized command: {e}")
                data = b""
            command = data.decode(errors="replace").strip()
            logger.debug(f"Received command: {command!r}")

            if command == CMD_SWITCH:
                await self._handle_switch()
            elif command == CMD_DEBUG:
                writer.write(await self._handle_debug())
            else:
                writer.write(INVALID_COMMAND_REPLY)

            await writer.drain()

        except Exception as e:
            logger.error(f"Error handling client: {e}", exc_info=True)

        finally:
            self.clients.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, BrokenPipeError) as e:
                logger.debug(f"Client connection closed with error: {e}")

    async def _handle_switch(self) -> None:
        """Switch back to the previously focused window.

        The window manager request is issued while holding the history lock,
        so the focus event it causes is processed after the marker is set.
        If no window was focused the marker is cleared again before the lock
        is released.
        """
        async with self.history_manager.exclusive() as history:
            history.mark_pending_switch()
            try:
                await switch_to(history, SWITCH_TARGET_INDEX, self.wm)
            except TargetUnavailable as e:
                history.clear_pending_switch()
                # Client gets no reply either way
                logger.warning(f"Switch failed: {e}", extra={"error": e.to_dict()})
            except Exception:
                history.clear_pending_switch()
                raise

    async def _handle_debug(self) -> bytes:
        """Render the focus history, most recent first."""
        async with self.history_manager.exclusive() as history:
            records = [record.to_dict() for record in history.snapshot()]
        return (json.dumps(records, indent=2) + "\n").encode()

"""Main daemon entry point with systemd integration.

This module wires the i3 connection, focus history and command server
together and provides systemd integration (sd_notify, journald logging).
"""

import asyncio
import contextlib
import logging
import os
import signal
import sys
from typing import Optional

try:
    from systemd import journal, daemon as sd_daemon
    SYSTEMD_AVAILABLE = True
except ImportError:
    SYSTEMD_AVAILABLE = False

from .config import FocusLastConfig, load_config
from .connection import WindowManagerClient
from .discovery import PropertyStore, XRootPropertyStore, allocate_socket_path
from .handlers import on_shutdown, on_window_focus, seed_focused_window
from .ipc_server import CommandServer
from .state import HistoryManager

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _suppress_stderr_fd():
    """Context manager to suppress stderr at the file descriptor level.

    systemd-python writes directly to file descriptor 2, bypassing
    Python's sys.stderr.
    """
    stderr_fd = sys.stderr.fileno()
    saved_stderr_fd = os.dup(stderr_fd)

    devnull_fd = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull_fd, stderr_fd)
    os.close(devnull_fd)

    try:
        yield
    finally:
        os.dup2(saved_stderr_fd, stderr_fd)
        os.close(saved_stderr_fd)


class DaemonHealthMonitor:
    """Manages systemd readiness notifications."""

    def notify_ready(self) -> None:
        """Send READY=1 signal to systemd."""
        if SYSTEMD_AVAILABLE:
            with _suppress_stderr_fd():
                sd_daemon.notify("READY=1")
            logger.info("Sent READY=1 to systemd")
        else:
            logger.debug("Systemd not available, skipping READY notification")

    def notify_stopping(self) -> None:
        """Send STOPPING=1 signal to systemd."""
        if SYSTEMD_AVAILABLE:
            with _suppress_stderr_fd():
                sd_daemon.notify("STOPPING=1")
            logger.info("Sent STOPPING=1 to systemd")


class FocusLastDaemon:
    """Main daemon class."""

    def __init__(
        self,
        config: FocusLastConfig,
        wm: Optional[WindowManagerClient] = None,
        property_store: Optional[PropertyStore] = None,
    ) -> None:
        """Initialize daemon.

        Args:
            config: Daemon settings
            wm: Window manager client (defaults to a new i3 connection)
            property_store: Discovery store (defaults to the X root window)
        """
        self.config = config
        self.history_manager = HistoryManager(
            max_size=config.history_size,
            min_focus=config.min_focus,
        )
        self.wm = wm or WindowManagerClient()
        self.property_store = property_store or XRootPropertyStore()
        self.command_server: Optional[CommandServer] = None
        self.health_monitor = DaemonHealthMonitor()
        self.shutdown_event = asyncio.Event()

    async def initialize(self) -> None:
        """Connect to the window manager, start and publish the command server.

        Raises:
            WindowManagerError: If i3/Sway cannot be reached
            OSError: If the control socket cannot be bound
            DiscoveryError: If the socket path cannot be published
        """
        logger.info("Initializing i3-focus-last daemon...")

        if not self.wm.is_connected:
            await self.wm.connect()

        await seed_focused_window(self.wm, self.history_manager)

        self.wm.on_window_focus(self._on_window_focus)
        self.wm.on_shutdown(self._on_shutdown)

        socket_path = allocate_socket_path(self.config.socket_dir)
        self.command_server = CommandServer(self.history_manager, self.wm)
        await self.command_server.start(socket_path)

        await self.property_store.publish(self.config.property_name, str(socket_path))

        logger.info("Daemon initialized")

    async def _on_window_focus(self, conn, event) -> None:
        await on_window_focus(conn, event, self.history_manager)

    async def _on_shutdown(self, conn, event) -> None:
        await on_shutdown(conn, event, self.shutdown_event.set)

    async def run(self) -> None:
        """Main event loop."""
        logger.info("Starting daemon event loop...")
        self.health_monitor.notify_ready()
        await self.wm.main()

    async def shutdown(self) -> None:
        """Graceful shutdown."""
        logger.info("Shutting down daemon...")
        self.health_monitor.notify_stopping()

        if self.command_server:
            try:
                await asyncio.wait_for(self.command_server.stop(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Command server shutdown timed out after 5s (continuing)")
            except Exception as e:
                logger.error(f"Error stopping command server: {e}")

        self.wm.close()
        logger.info("Daemon shutdown complete")

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def shutdown_handler(signum: int) -> None:
            logger.info(f"Received signal {signum}, initiating shutdown...")
            self.shutdown_event.set()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown_handler, sig)


def setup_logging(log_level: str = "INFO") -> None:
    """Setup logging to systemd journal or stderr."""
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if SYSTEMD_AVAILABLE:
        with _suppress_stderr_fd():
            handler = journal.JournalHandler(SYSLOG_IDENTIFIER="i3-focus-last")
    else:
        handler = logging.StreamHandler(sys.stderr)

    formatter = logging.Formatter(
        "%(levelname)s [%(name)s] %(message)s"
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger.info(f"Logging configured: level={log_level}")


async def main_async(config: FocusLastConfig) -> int:
    """Async main function.

    Returns:
        Exit code (0 = success, non-zero = error)
    """
    daemon = FocusLastDaemon(config)

    try:
        daemon.setup_signal_handlers()
        await daemon.initialize()

        run_task = asyncio.create_task(daemon.run())
        shutdown_task = asyncio.create_task(daemon.shutdown_event.wait())

        done, pending = await asyncio.wait(
            [run_task, shutdown_task], return_when=asyncio.FIRST_COMPLETED
        )

        for task in pending:
            task.cancel()

        await daemon.shutdown()

        if run_task in done and run_task.exception():
            logger.error(f"Event loop terminated: {run_task.exception()}")
            return 1

        return 0

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        await daemon.shutdown()
        return 1


def main(config: Optional[FocusLastConfig] = None) -> None:
    """Daemon entry point."""
    config = config or load_config()
    setup_logging(config.log_level)

    logger.info("i3-focus-last daemon starting...")
    logger.info(f"PID: {os.getpid()}")

    try:
        exit_code = asyncio.run(main_async(config))
        sys.exit(exit_code)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)

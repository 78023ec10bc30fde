#!/usr/bin/env python3
"""
i3-focus-last CLI

    i3-focus-last server    run the daemon
    i3-focus-last switch    focus the previously focused window
    i3-focus-last debug     print the focus history

Any argument other than "server" is sent verbatim to the running daemon and
its reply is copied to stdout.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import FocusLastConfig, LOG_LEVELS, load_config
from .discovery import PropertyStore, XRootPropertyStore
from .errors import DiscoveryError

logger = logging.getLogger(__name__)

SERVER_COMMAND = "server"


class FocusLastCLI:
    """CLI client for the i3-focus-last daemon."""

    def __init__(self, config: FocusLastConfig, property_store: Optional[PropertyStore] = None):
        """Initialize CLI client.

        Args:
            config: Client settings (discovery key)
            property_store: Discovery store (defaults to the X root window)
        """
        self.config = config
        self.property_store = property_store or XRootPropertyStore()

    async def send_command(self, command: str) -> bytes:
        """
        Send one command line to the daemon.

        Args:
            command: Command text (without newline)

        Returns:
            Everything the daemon wrote before closing the connection

        Raises:
            DiscoveryError: If the daemon's socket cannot be resolved
            OSError: If the socket cannot be reached
        """
        socket_path = await self.property_store.resolve(self.config.property_name)
        logger.debug(f"Connecting to {socket_path}")

        reader, writer = await asyncio.open_unix_connection(socket_path)
        try:
            writer.write((command + "\n").encode())
            await writer.drain()
            return await reader.read()
        finally:
            writer.close()
            await writer.wait_closed()

    async def cmd_send(self, command: str) -> int:
        """Send command and copy the reply to stdout."""
        try:
            response = await self.send_command(command)
        except DiscoveryError as e:
            print(f"i3-focus-last: {e}", file=sys.stderr)
            return 1
        except OSError as e:
            print(f"i3-focus-last: cannot reach daemon: {e}", file=sys.stderr)
            return 1

        sys.stdout.buffer.write(response)
        sys.stdout.flush()
        return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="i3-focus-last",
        description="Switch back to the previously focused i3/Sway window"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: ~/.config/i3/focus-last.json)"
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (overrides configuration)"
    )
    parser.add_argument(
        "command",
        nargs="?",
        help='"server" to run the daemon, otherwise a command for the daemon (switch, debug)'
    )
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and dispatch to server or client mode.

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_usage(sys.stderr)
        return 2

    config = load_config(args.config)
    if args.log_level:
        config = config.model_copy(update={"log_level": args.log_level})

    if args.command == SERVER_COMMAND:
        from .daemon import main as daemon_main
        daemon_main(config)
        return 0

    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s [%(name)s] %(message)s"
    )
    return asyncio.run(FocusLastCLI(config).cmd_send(args.command))


def main() -> None:
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()

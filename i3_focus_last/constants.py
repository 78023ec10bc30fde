"""Centralized paths and constants for i3-focus-last.

Single source of truth for file paths and policy defaults used across the
daemon and the client.
"""

import os
import tempfile
from datetime import timedelta
from pathlib import Path
from typing import Final


# Maximum number of windows kept in the focus history
HISTORY_SIZE: Final[int] = 100

# Minimum time a window must hold focus to stay in the history
MIN_FOCUS: Final[timedelta] = timedelta(seconds=2)

# X root window property holding the control socket path
DISCOVERY_PROPERTY: Final[str] = "I3_FOCUS_LAST_SOCKET"

# Control channel commands
CMD_SWITCH: Final[str] = "switch"
CMD_DEBUG: Final[str] = "debug"
INVALID_COMMAND_REPLY: Final[bytes] = b"Invalid command\n"

# History index targeted by the switch command (the previously focused window)
SWITCH_TARGET_INDEX: Final[int] = 1


class ConfigPaths:
    """Centralized configuration paths.

    All paths are computed once at import time based on the user's
    environment.

    Example:
        from .constants import ConfigPaths

        config = load_config(ConfigPaths.CONFIG_FILE)
    """

    HOME: Final[Path] = Path.home()
    I3_CONFIG_DIR: Final[Path] = HOME / ".config" / "i3"

    CONFIG_FILE: Final[Path] = I3_CONFIG_DIR / "focus-last.json"

    # Runtime directory for the control socket (reboot-volatile)
    RUNTIME_DIR: Final[Path] = Path(os.environ.get("XDG_RUNTIME_DIR") or tempfile.gettempdir())

    SOCKET_PREFIX: Final[str] = "i3-focus-last"

    @classmethod
    def socket_path(cls, socket_dir: Path, pid: int, timestamp_ns: int) -> Path:
        """Get path to a control socket for one daemon invocation.

        Args:
            socket_dir: Directory holding the socket
            pid: Daemon process ID
            timestamp_ns: Daemon start time in nanoseconds since the epoch

        Returns:
            Path to {socket_dir}/i3-focus-last-{pid}-{timestamp_ns}.sock
        """
        return socket_dir / f"{cls.SOCKET_PREFIX}-{pid}-{timestamp_ns}.sock"

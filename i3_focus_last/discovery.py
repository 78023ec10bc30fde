"""Control socket discovery for i3-focus-last.

The daemon creates a fresh socket path per run and publishes it under a
well-known key; clients resolve the key before connecting. The default
store is a STRING property on the X root window, which lives exactly as
long as the X session.
"""

import asyncio
import logging
import os
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .constants import ConfigPaths
from .errors import DiscoveryError

logger = logging.getLogger(__name__)


def allocate_socket_path(socket_dir: Path, pid: Optional[int] = None, timestamp_ns: Optional[int] = None) -> Path:
    """Generate a control socket path unique to this daemon invocation.

    Args:
        socket_dir: Directory holding the socket
        pid: Process ID (defaults to current process)
        timestamp_ns: Start time (defaults to now)

    Returns:
        Socket path that no earlier daemon run used
    """
    return ConfigPaths.socket_path(
        socket_dir,
        pid if pid is not None else os.getpid(),
        timestamp_ns if timestamp_ns is not None else time.time_ns(),
    )


class PropertyStore(ABC):
    """Key/value store visible to every process in the desktop session."""

    @abstractmethod
    async def publish(self, key: str, value: str) -> None:
        """Store value under key.

        Raises:
            DiscoveryError: If the value could not be stored
        """

    @abstractmethod
    async def resolve(self, key: str) -> str:
        """Read the value stored under key.

        Raises:
            DiscoveryError: If the key is missing or cannot be read
        """


class XRootPropertyStore(PropertyStore):
    """Stores values as 8-bit STRING properties on the X root window.

    Uses the xprop command (x11-utils / xorg-xprop).
    """

    def __init__(self, xprop: str = "xprop", timeout: float = 2.0) -> None:
        self.xprop = xprop
        self.timeout = timeout

    async def _run(self, operation: str, key: str, *args: str) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                self.xprop, "-root", *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except FileNotFoundError:
            raise DiscoveryError(operation, key, "xprop command not found. Install x11-utils or xorg-xprop package.")
        except asyncio.TimeoutError:
            raise DiscoveryError(operation, key, f"xprop timed out after {self.timeout}s")

        if proc.returncode != 0:
            raise DiscoveryError(operation, key, stderr.decode().strip() or f"xprop exited with {proc.returncode}")

        return stdout.decode().strip()

    async def publish(self, key: str, value: str) -> None:
        await self._run("publish", key, "-f", key, "8s", "-set", key, value)
        logger.info(f"Published {key}={value} on X root window")

    async def resolve(self, key: str) -> str:
        output = await self._run("resolve", key, key)

        # Output: 'KEY(STRING) = "value"' or 'KEY:  not found.'
        if " = " not in output:
            raise DiscoveryError("resolve", key, "property not set (is the daemon running?)")

        value = output.split(" = ", 1)[1].strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]

        if not value:
            raise DiscoveryError("resolve", key, "property is empty")

        logger.debug(f"Resolved {key}={value}")
        return value

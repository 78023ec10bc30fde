"""
Error types for i3-focus-last.

Structured exceptions with error codes for the daemon, the switcher and
service discovery.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """
    Error codes for i3-focus-last.

    - 1000-1099: Window manager errors
    - 1100-1199: Switch errors
    - 1200-1299: Discovery errors
    """

    # Window manager errors (1000-1099)
    WM_CONNECT_FAILED = 1000
    WM_COMMAND_FAILED = 1001

    # Switch errors (1100-1199)
    TARGET_UNAVAILABLE = 1100

    # Discovery errors (1200-1299)
    PUBLISH_FAILED = 1200
    RESOLVE_FAILED = 1201


class FocusLastError(Exception):
    """Base exception for i3-focus-last errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context for debugging
        """
        self.code = code
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for logging.

        Returns:
            Error dictionary with code, message and context
        """
        result = {
            "code": self.code.value,
            "message": self.message
        }

        if self.context:
            result["context"] = self.context

        return result


class TargetUnavailable(FocusLastError):
    """No history entry at or after the requested index could be focused."""

    def __init__(self, index: int):
        """
        Initialize target unavailable error.

        Args:
            index: History index the switch started from
        """
        self.index = index
        super().__init__(
            code=ErrorCode.TARGET_UNAVAILABLE,
            message=f"No focusable window at or after history index {index}",
            context={"index": index}
        )


class WindowManagerError(FocusLastError):
    """i3/Sway IPC communication error."""

    def __init__(self, operation: str, reason: str):
        """
        Initialize window manager error.

        Args:
            operation: IPC operation that failed
            reason: Reason for failure
        """
        super().__init__(
            code=ErrorCode.WM_CONNECT_FAILED if operation == "connect" else ErrorCode.WM_COMMAND_FAILED,
            message=f"Window manager {operation} failed: {reason}",
            context={"operation": operation, "reason": reason}
        )


class DiscoveryError(FocusLastError):
    """Publishing or resolving the control socket address failed."""

    def __init__(self, operation: str, key: str, reason: str):
        """
        Initialize discovery error.

        Args:
            operation: "publish" or "resolve"
            key: Discovery key
            reason: Reason for failure
        """
        super().__init__(
            code=ErrorCode.PUBLISH_FAILED if operation == "publish" else ErrorCode.RESOLVE_FAILED,
            message=f"Failed to {operation} {key}: {reason}",
            context={"operation": operation, "key": key, "reason": reason}
        )

"""Data models for i3-focus-last.

This module defines the dataclasses used for focus history state.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class WindowRecord:
    """One entry of the focus history."""

    # Container ID assigned by i3/Sway (opaque, compared by equality only)
    id: int

    # When this record last became the most recent entry (shown by debug)
    focused_at: datetime

    # True only between issuing a switch and processing its focus event
    just_switched: bool = False

    # Monotonic seconds matching focused_at, used for the debounce window.
    # Derived from focused_at when not given.
    clock: Optional[float] = None

    def __post_init__(self) -> None:
        if self.clock is None:
            self.clock = self.focused_at.timestamp()

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "focused_at": self.focused_at.isoformat(),
            "just_switched": self.just_switched,
        }

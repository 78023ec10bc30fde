"""i3 Focus Last

Alt-tab style "focus the previous window" for i3 (and Sway with XWayland).

This package provides a small long-running daemon that:
- Records window focus order from the i3 IPC event stream
- Drops windows that only held focus briefly (debounce)
- Exposes a UNIX socket that switches back to the previous window

Author: NixOS Configuration
License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"

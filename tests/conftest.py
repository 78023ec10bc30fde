"""Pytest configuration for i3-focus-last tests."""

import sys
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock

import pytest

# Make the package importable without installation
package_root = Path(__file__).parent.parent
if str(package_root) not in sys.path:
    sys.path.insert(0, str(package_root))

from i3_focus_last.connection import WindowManagerClient
from i3_focus_last.discovery import PropertyStore
from i3_focus_last.state import HistoryManager


@pytest.fixture
def socket_dir() -> Generator[Path, None, None]:
    """Short temporary directory for UNIX sockets (sun_path is limited to 108 bytes)."""
    with tempfile.TemporaryDirectory(prefix="ifl-", dir="/tmp") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_wm():
    """Mock window manager client that focuses every window successfully."""
    wm = AsyncMock(spec=WindowManagerClient)
    wm.focus.return_value = True
    wm.get_focused_window_id.return_value = None
    wm.is_connected = True
    return wm


@pytest.fixture
def mock_property_store():
    """Mock discovery store."""
    return AsyncMock(spec=PropertyStore)


@pytest.fixture
def history_manager():
    """History manager with default size and debounce window."""
    return HistoryManager()

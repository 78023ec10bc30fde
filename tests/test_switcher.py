"""
Unit tests for switch_to.

Tests cover stale window skipping and history exhaustion.
"""

from datetime import datetime, timedelta
from unittest.mock import call

import pytest

from i3_focus_last.errors import ErrorCode, TargetUnavailable
from i3_focus_last.history import FocusHistory
from i3_focus_last.switcher import switch_to

T0 = datetime(2025, 1, 1, 12, 0, 0)

W0, W1, W2 = 10, 11, 12


def make_history(*window_ids: int) -> FocusHistory:
    """Build a history whose front is the first argument."""
    history = FocusHistory()
    for i, window_id in enumerate(reversed(window_ids)):
        history.on_focus(window_id, T0 + timedelta(seconds=10 * i))
    return history


class TestSwitchTo:
    """Test switching to history entries."""

    @pytest.mark.asyncio
    async def test_focuses_requested_index(self, mock_wm):
        history = make_history(W0, W1, W2)

        record = await switch_to(history, 1, mock_wm)

        assert record.id == W1
        mock_wm.focus.assert_awaited_once_with(W1)

    @pytest.mark.asyncio
    async def test_skips_stale_window(self, mock_wm):
        """W1 is gone, so the switch lands on W2."""
        history = make_history(W0, W1, W2)
        mock_wm.focus.side_effect = lambda window_id: window_id != W1

        record = await switch_to(history, 1, mock_wm)

        assert record.id == W2
        assert mock_wm.focus.await_args_list == [call(W1), call(W2)]

    @pytest.mark.asyncio
    async def test_stale_window_stays_in_history(self, mock_wm):
        history = make_history(W0, W1, W2)
        mock_wm.focus.side_effect = lambda window_id: window_id != W1

        await switch_to(history, 1, mock_wm)

        assert history.window_ids() == [W0, W1, W2]

    @pytest.mark.asyncio
    async def test_exhausted_history(self, mock_wm):
        history = make_history(W0)

        with pytest.raises(TargetUnavailable) as exc_info:
            await switch_to(history, 1, mock_wm)

        assert exc_info.value.index == 1
        assert exc_info.value.code == ErrorCode.TARGET_UNAVAILABLE
        mock_wm.focus.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_targets_stale(self, mock_wm):
        history = make_history(W0, W1, W2)
        mock_wm.focus.return_value = False

        with pytest.raises(TargetUnavailable) as exc_info:
            await switch_to(history, 1, mock_wm)

        assert exc_info.value.index == 1
        assert mock_wm.focus.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_history(self, mock_wm):
        with pytest.raises(TargetUnavailable):
            await switch_to(FocusHistory(), 1, mock_wm)

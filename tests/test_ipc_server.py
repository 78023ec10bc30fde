"""
Integration tests for CommandServer.

Runs the server on a real UNIX socket with a mock window manager.
"""

import asyncio
import json
import stat
from datetime import datetime, timedelta

import pytest

from i3_focus_last.ipc_server import CommandServer

T0 = datetime(2025, 1, 1, 12, 0, 0)

A, B, C = 101, 202, 303


async def send(socket_path, payload: bytes) -> bytes:
    """Send raw bytes and read the reply until the server closes the connection."""
    reader, writer = await asyncio.open_unix_connection(str(socket_path))
    writer.write(payload)
    await writer.drain()
    data = await reader.read()
    writer.close()
    await writer.wait_closed()
    return data


class GatedWindowManager:
    """Window manager whose focus call blocks until released."""

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.focused = []

    async def focus(self, window_id: int) -> bool:
        self.entered.set()
        await self.release.wait()
        self.focused.append(window_id)
        return True


@pytest.fixture
def server_factory(socket_dir, history_manager):
    """Start a CommandServer on a temporary socket (tests stop it themselves)."""

    async def start(wm):
        server = CommandServer(history_manager, wm)
        await server.start(socket_dir / "test.sock")
        return server

    return start


async def populate(history_manager, *window_ids):
    """Record focus events so that the first argument ends up in front."""
    for i, window_id in enumerate(reversed(window_ids)):
        await history_manager.record_focus(window_id, T0 + timedelta(seconds=10 * i))


class TestUnknownCommand:
    """Test diagnostics for unknown input."""

    @pytest.mark.asyncio
    async def test_unknown_command(self, server_factory, mock_wm):
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"foobar\n")
        finally:
            await server.stop()

        assert reply == b"Invalid command\n"

    @pytest.mark.asyncio
    async def test_empty_line(self, server_factory, mock_wm):
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"\n")
        finally:
            await server.stop()

        assert reply == b"Invalid command\n"

    @pytest.mark.asyncio
    async def test_undecodable_input(self, server_factory, mock_wm):
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"\xff\xfe\n")
        finally:
            await server.stop()

        assert reply == b"Invalid command\n"

    @pytest.mark.asyncio
    async def test_command_is_case_sensitive(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A, B)
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"SWITCH\n")
        finally:
            await server.stop()

        assert reply == b"Invalid command\n"
        mock_wm.focus.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_oversized_line(self, server_factory, mock_wm):
        """A line longer than the stream limit is answered like any unknown command."""
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"x" * 70000 + b"\n")
            # The server keeps serving other connections
            second = await send(server.socket_path, b"debug\n")
        finally:
            await server.stop()

        assert reply == b"Invalid command\n"
        assert json.loads(second) == []

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_is_ignored(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A, B)
        server = await server_factory(mock_wm)
        try:
            debug_reply = await send(server.socket_path, b"  debug \r\n")
            switch_reply = await send(server.socket_path, b" switch\t\n")
        finally:
            await server.stop()

        assert [r["id"] for r in json.loads(debug_reply)] == [A, B]
        assert switch_reply == b""
        mock_wm.focus.assert_awaited_once_with(B)


class TestDebugCommand:
    """Test the read-only history dump."""

    @pytest.mark.asyncio
    async def test_debug_dumps_history(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A, B, C)
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"debug\n")
        finally:
            await server.stop()

        assert reply.endswith(b"\n")
        records = json.loads(reply)
        assert [r["id"] for r in records] == [A, B, C]
        assert all(r["just_switched"] is False for r in records)
        assert records[0]["focused_at"] == (T0 + timedelta(seconds=20)).isoformat()

    @pytest.mark.asyncio
    async def test_debug_is_read_only(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A, B)
        history_manager.history.mark_pending_switch()
        server = await server_factory(mock_wm)
        try:
            first = await send(server.socket_path, b"debug\n")
            second = await send(server.socket_path, b"debug\n")
        finally:
            await server.stop()

        assert first == second
        assert json.loads(first)[0]["just_switched"] is True

    @pytest.mark.asyncio
    async def test_debug_empty_history(self, server_factory, mock_wm):
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"debug\n")
        finally:
            await server.stop()

        assert json.loads(reply) == []


class TestSwitchCommand:
    """Test switching back to the previous window."""

    @pytest.mark.asyncio
    async def test_switch_focuses_previous_window(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A, B, C)
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"switch\n")
        finally:
            await server.stop()

        assert reply == b""
        mock_wm.focus.assert_awaited_once_with(B)
        assert history_manager.history.front.just_switched is True

    @pytest.mark.asyncio
    async def test_switch_failure_is_silent(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A)
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"switch\n")
        finally:
            await server.stop()

        assert reply == b""
        mock_wm.focus.assert_not_awaited()
        assert history_manager.history.front.just_switched is False

    @pytest.mark.asyncio
    async def test_failed_switch_keeps_debounce(self, server_factory, mock_wm, history_manager):
        """After a switch with no target, a short focus is still evicted."""
        await populate(history_manager, A)
        server = await server_factory(mock_wm)
        try:
            await send(server.socket_path, b"switch\n")
        finally:
            await server.stop()

        await history_manager.record_focus(B, T0 + timedelta(seconds=0.5))

        assert history_manager.history.window_ids() == [B]

    @pytest.mark.asyncio
    async def test_switch_with_stale_windows(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A, B, C)
        mock_wm.focus.side_effect = lambda window_id: window_id == C
        server = await server_factory(mock_wm)
        try:
            await send(server.socket_path, b"switch\n")
        finally:
            await server.stop()

        assert [c.args[0] for c in mock_wm.focus.await_args_list] == [B, C]

    @pytest.mark.asyncio
    async def test_window_manager_error_closes_connection(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A, B)
        mock_wm.focus.side_effect = ConnectionResetError("i3 went away")
        server = await server_factory(mock_wm)
        try:
            reply = await send(server.socket_path, b"switch\n")
            # The server keeps serving other connections
            second = await send(server.socket_path, b"nope\n")
        finally:
            await server.stop()

        assert reply == b""
        assert second == b"Invalid command\n"
        assert history_manager.history.front.just_switched is False

    @pytest.mark.asyncio
    async def test_switch_holds_lock_during_focus_request(self, server_factory, history_manager):
        """The focus event caused by a switch is applied after the switch completes."""
        await populate(history_manager, A, B)
        wm = GatedWindowManager()
        server = await server_factory(wm)
        try:
            client = asyncio.create_task(send(server.socket_path, b"switch\n"))
            await wm.entered.wait()

            assert history_manager.is_locked

            # i3 reports focus on B 0.1s after A was focused
            event = asyncio.create_task(
                history_manager.record_focus(B, T0 + timedelta(seconds=10.1))
            )
            await asyncio.sleep(0)
            assert not event.done()

            wm.release.set()
            assert await client == b""
            await event
        finally:
            await server.stop()

        assert wm.focused == [B]
        assert history_manager.history.window_ids() == [B, A]

    @pytest.mark.asyncio
    async def test_concurrent_clients(self, server_factory, mock_wm, history_manager):
        await populate(history_manager, A, B)
        server = await server_factory(mock_wm)
        try:
            replies = await asyncio.gather(
                send(server.socket_path, b"debug\n"),
                send(server.socket_path, b"bogus\n"),
                send(server.socket_path, b"debug\n"),
            )
        finally:
            await server.stop()

        assert replies[0] == replies[2]
        assert replies[1] == b"Invalid command\n"


class TestServerLifecycle:
    """Test socket creation and cleanup."""

    @pytest.mark.asyncio
    async def test_socket_permissions(self, server_factory, mock_wm):
        server = await server_factory(mock_wm)
        try:
            mode = stat.S_IMODE(server.socket_path.stat().st_mode)
        finally:
            await server.stop()

        assert mode == 0o600

    @pytest.mark.asyncio
    async def test_stop_removes_socket(self, server_factory, mock_wm):
        server = await server_factory(mock_wm)
        socket_path = server.socket_path

        await server.stop()

        assert not socket_path.exists()

    @pytest.mark.asyncio
    async def test_start_replaces_leftover_file(self, socket_dir, history_manager, mock_wm):
        socket_path = socket_dir / "test.sock"
        socket_path.write_text("stale")
        server = CommandServer(history_manager, mock_wm)

        await server.start(socket_path)
        try:
            reply = await send(socket_path, b"x\n")
        finally:
            await server.stop()

        assert reply == b"Invalid command\n"

#!/usr/bin/env python3
"""Tests for the session endpoint controller: open, submit, reconnect and shutdown."""

import orjson
import pytest

from mcp_sse_relay.errors import SessionNotFoundError
from mcp_sse_relay.protocol import SessionController, SessionTable, generate_session_id
from mcp_sse_relay.tools import create_default_registry

# ============================================================================
# Helpers
# ============================================================================


def _make_controller(**kwargs):
    kwargs.setdefault("keepalive_interval", 0)
    return SessionController(
        SessionTable(),
        create_default_registry(),
        server_info={"name": "test-server", "version": "0.1.0"},
        **kwargs,
    )


def _events(channel):
    """Pop queued frames as (event, payload) pairs; the end sentinel shows up as None."""
    events = []
    while not channel._queue.empty():
        frame = channel._queue.get_nowait()
        if frame is None:
            events.append(None)
            continue
        lines = frame.rstrip("\n").split("\n")
        events.append((lines[0].removeprefix("event: "), orjson.loads(lines[1].removeprefix("data: "))))
    return events


def _request(method, params=None, msg_id=1):
    return {"jsonrpc": "2.0", "id": msg_id, "method": method, "params": params or {}}


# ============================================================================
# Opening sessions
# ============================================================================


class TestOpenSession:
    @pytest.mark.asyncio
    async def test_startup_sequence(self):
        controller = _make_controller()
        session = await controller.open_session("abc")

        events = _events(session.channel)
        assert [name for name, _ in events] == ["connected", "server-status", "server-status"]

        starting, started = events[1][1], events[2][1]
        assert starting["status"] == "starting"
        assert starting["message"] == "正在启动MCP服务器..."
        assert starting["sessionId"] == "abc"
        assert started["status"] == "started"
        assert started["message"] == "MCP服务器已成功启动"
        assert started["serverInfo"]["name"] == "test-server"
        assert "calculator" in started["serverInfo"]["tools"]
        assert started["serverInfo"]["resources"] == ["greeting"]

    @pytest.mark.asyncio
    async def test_session_registered(self):
        controller = _make_controller()
        session = await controller.open_session("abc")

        assert controller.table.get("abc") is session
        assert session.channel.is_open

    @pytest.mark.asyncio
    async def test_generated_id(self):
        controller = _make_controller()
        session = await controller.open_session()

        assert session.id.startswith("session_")
        assert session.id in controller.table

    @pytest.mark.asyncio
    async def test_generated_ids_do_not_collide(self, monkeypatch):
        monkeypatch.setattr("mcp_sse_relay.protocol.controller.time.time", lambda: 1700000000.0)
        controller = _make_controller()

        first = await controller.open_session()
        second = await controller.open_session()

        assert first.id == "session_1700000000000"
        assert second.id != first.id
        assert controller.table.count() == 2

    def test_generate_session_id(self):
        assert generate_session_id().startswith("session_")

    @pytest.mark.asyncio
    async def test_reconnect_replaces_previous_session(self):
        controller = _make_controller()
        old = await controller.open_session("abc")
        new = await controller.open_session("abc")

        assert old.channel.is_closed
        assert controller.table.get("abc") is new
        assert controller.table.count() == 1

    @pytest.mark.asyncio
    async def test_closing_replaced_channel_keeps_new_entry(self):
        controller = _make_controller()
        old = await controller.open_session("abc")
        new = await controller.open_session("abc")

        old.channel.close()
        assert controller.table.get("abc") is new

    @pytest.mark.asyncio
    async def test_channel_close_removes_session(self):
        controller = _make_controller()
        session = await controller.open_session("abc")

        session.channel.close()

        assert "abc" not in controller.table

    @pytest.mark.asyncio
    async def test_failing_initializer(self):
        async def initializer(session):
            raise RuntimeError("boom")

        controller = _make_controller(initializer=initializer)
        session = await controller.open_session("abc")

        events = _events(session.channel)
        status = events[2][1]
        assert status["status"] == "error"
        assert status["message"] == "MCP服务器启动失败: boom"
        assert status["error"] == "boom"
        assert events[3][0] == "disconnected"
        assert session.channel.is_closed
        assert "abc" not in controller.table

    @pytest.mark.asyncio
    async def test_sync_initializer(self):
        seen = []
        controller = _make_controller(initializer=lambda session: seen.append(session.id))
        await controller.open_session("abc")
        assert seen == ["abc"]


# ============================================================================
# Submitting envelopes
# ============================================================================


class TestSubmit:
    @pytest.mark.asyncio
    async def test_response_pushed_on_channel(self):
        controller = _make_controller()
        session = await controller.open_session("abc")
        _events(session.channel)

        response = await controller.submit(
            "abc", _request("tools/call", {"name": "calculator", "arguments": {"operation": "add", "a": 5, "b": 3}}, 7)
        )

        assert response.id == 7
        assert _events(session.channel) == [
            (
                "mcp-message",
                {"jsonrpc": "2.0", "id": 7, "result": {"content": [{"type": "text", "text": "5 + 3 = 8"}]}},
            )
        ]

    @pytest.mark.asyncio
    async def test_unknown_session(self):
        controller = _make_controller()
        with pytest.raises(SessionNotFoundError):
            await controller.submit("missing", _request("ping"))

    @pytest.mark.asyncio
    async def test_notification_pushes_nothing(self):
        controller = _make_controller()
        session = await controller.open_session("abc")
        _events(session.channel)

        result = await controller.submit("abc", {"jsonrpc": "2.0", "method": "notifications/initialized"})

        assert result is None
        assert _events(session.channel) == []

    @pytest.mark.asyncio
    async def test_submit_touches_session(self):
        controller = _make_controller()
        session = await controller.open_session("abc")
        session.last_activity = 0

        await controller.submit("abc", _request("ping"))

        assert session.last_activity > 0

    @pytest.mark.asyncio
    async def test_reject_unparsable(self):
        controller = _make_controller()
        session = await controller.open_session("abc")
        _events(session.channel)

        controller.reject_unparsable("abc", "Invalid JSON: unexpected character")

        assert _events(session.channel) == [
            (
                "mcp-message",
                {
                    "jsonrpc": "2.0",
                    "id": None,
                    "error": {
                        "code": -32603,
                        "message": "Internal error",
                        "data": "Invalid JSON: unexpected character",
                    },
                },
            )
        ]

    @pytest.mark.asyncio
    async def test_response_after_close_is_dropped(self):
        controller = _make_controller()
        session = await controller.open_session("abc")
        session.channel.close()
        # Simulate a handler finishing after its channel went away
        controller.table.put("abc", session)
        _events(session.channel)

        await controller.submit("abc", _request("ping"))

        assert _events(session.channel) == []


# ============================================================================
# Status and shutdown
# ============================================================================


class TestStatusAndShutdown:
    @pytest.mark.asyncio
    async def test_status(self):
        controller = _make_controller()
        await controller.open_session("a")
        await controller.open_session("b")

        status = controller.status()
        assert status["status"] == "running"
        assert status["activeSessions"] == 2
        assert status["version"] == "0.1.0"
        assert status["resources"] == ["greeting"]

    @pytest.mark.asyncio
    async def test_shutdown_closes_every_session(self):
        controller = _make_controller()
        sessions = [await controller.open_session(sid) for sid in ("a", "b", "c")]

        assert controller.shutdown() == 3
        assert controller.table.count() == 0
        assert all(session.channel.is_closed for session in sessions)
        assert _events(sessions[0].channel)[-2:] == [("disconnected", {"message": "MCP Server disconnected"}), None]

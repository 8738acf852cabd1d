#!/usr/bin/env python3
"""Tests for the message router: classification, dispatch and error envelopes."""

import pytest

from mcp_sse_relay.protocol import MessageRouter
from mcp_sse_relay.registry import HandlerRegistry
from mcp_sse_relay.tools import calculator, greeting
from mcp_sse_relay.types import ResourceHandler, ToolHandler

# ============================================================================
# Helpers
# ============================================================================


def _explode() -> str:
    raise RuntimeError("boom")


def _broken_reader(uri):
    raise OSError("disk gone")


def _make_router():
    registry = HandlerRegistry()
    registry.register_tool(calculator.create_tool())
    registry.register_tool(ToolHandler.from_function(_explode, name="explode"))
    registry.register_resource(greeting.create_resource())
    registry.register_resource(ResourceHandler.from_function("broken://", _broken_reader, name="broken"))
    return MessageRouter(registry, {"name": "test-server", "version": "0.1.0"})


def _request(method, params=None, msg_id=1):
    message = {"jsonrpc": "2.0", "id": msg_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


# ============================================================================
# Handshake
# ============================================================================


class TestHandshake:
    @pytest.mark.asyncio
    async def test_initialize(self):
        response = await _make_router().route(_request("initialize", {"clientInfo": {"name": "pytest"}}))

        assert response.to_dict() == {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {
                "protocolVersion": "2024-11-05",
                "capabilities": {"tools": {}, "resources": {}},
                "serverInfo": {"name": "test-server", "version": "0.1.0"},
            },
        }

    @pytest.mark.asyncio
    async def test_ping(self):
        response = await _make_router().route(_request("ping", msg_id="ping-1"))
        assert response.to_dict() == {"jsonrpc": "2.0", "id": "ping-1", "result": {}}

    @pytest.mark.asyncio
    async def test_initialized_notification_has_no_response(self):
        router = _make_router()
        assert await router.route({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None

    @pytest.mark.asyncio
    async def test_failed_notification_has_no_response(self):
        router = _make_router()
        assert await router.route({"jsonrpc": "2.0", "method": "no/such/method"}) is None


# ============================================================================
# Ids and envelope shape
# ============================================================================


class TestEnvelopeShape:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("msg_id", [0, 42, "abc", None])
    async def test_id_echoed_verbatim(self, msg_id):
        response = await _make_router().route(_request("ping", msg_id=msg_id))
        assert response.to_dict()["id"] == msg_id

    @pytest.mark.asyncio
    async def test_exactly_one_of_result_or_error(self):
        router = _make_router()
        ok = (await router.route(_request("ping"))).to_dict()
        failed = (await router.route(_request("nope"))).to_dict()

        assert "result" in ok and "error" not in ok
        assert "error" in failed and "result" not in failed

    @pytest.mark.asyncio
    async def test_non_object_envelope(self):
        response = await _make_router().route(["not", "an", "object"])
        message = response.to_dict()

        assert message["id"] is None
        assert message["error"]["code"] == -32603
        assert message["error"]["message"] == "Internal error"

    @pytest.mark.asyncio
    async def test_non_object_params(self):
        response = await _make_router().route(_request("tools/call", params=["calculator"]))
        assert response.error.code == -32603


# ============================================================================
# Method classification
# ============================================================================


class TestUnknownMethod:
    @pytest.mark.asyncio
    async def test_unknown_method(self):
        response = await _make_router().route(_request("tools/list", msg_id=9))

        assert response.to_dict() == {
            "jsonrpc": "2.0",
            "id": 9,
            "error": {"code": -32601, "message": "Method not found"},
        }

    @pytest.mark.asyncio
    async def test_missing_method(self):
        response = await _make_router().route({"jsonrpc": "2.0", "id": 3})
        assert response.error.code == -32601


# ============================================================================
# tools/call
# ============================================================================


class TestToolsCall:
    @pytest.mark.asyncio
    async def test_calculator_result(self):
        response = await _make_router().route(
            _request("tools/call", {"name": "calculator", "arguments": {"operation": "add", "a": 5, "b": 3}})
        )
        assert response.result == {"content": [{"type": "text", "text": "5 + 3 = 8"}]}

    @pytest.mark.asyncio
    async def test_unknown_tool_with_suggestion(self):
        response = await _make_router().route(_request("tools/call", {"name": "calculater", "arguments": {}}))
        error = response.to_dict()["error"]

        assert error["code"] == -32601
        assert error["message"] == "Tool 'calculater' not found"
        assert error["data"] == {"suggestion": "calculator"}

    @pytest.mark.asyncio
    async def test_unknown_tool_without_suggestion(self):
        response = await _make_router().route(_request("tools/call", {"name": "zzzz"}))
        assert "data" not in response.to_dict()["error"]

    @pytest.mark.asyncio
    async def test_tool_fault(self):
        response = await _make_router().route(_request("tools/call", {"name": "explode", "arguments": {}}, msg_id=5))

        assert response.to_dict() == {
            "jsonrpc": "2.0",
            "id": 5,
            "error": {"code": -32603, "message": "Tool execution error", "data": "boom"},
        }

    @pytest.mark.asyncio
    async def test_invalid_arguments(self):
        response = await _make_router().route(
            _request("tools/call", {"name": "calculator", "arguments": {"operation": "add", "a": 1}})
        )
        error = response.to_dict()["error"]

        assert error["code"] == -32603
        assert error["message"] == "Tool execution error"
        assert "Invalid parameter 'b'" in error["data"]


# ============================================================================
# resources/read
# ============================================================================


class TestResourcesRead:
    @pytest.mark.asyncio
    async def test_greeting(self):
        response = await _make_router().route(_request("resources/read", {"uri": "greeting://Alice"}))

        assert response.result == {
            "contents": [{"uri": "greeting://Alice", "mimeType": "text/plain", "text": "Hello, Alice!"}]
        }

    @pytest.mark.asyncio
    async def test_unknown_resource(self):
        response = await _make_router().route(_request("resources/read", {"uri": "weather://today"}))
        error = response.to_dict()["error"]

        assert error["code"] == -32601
        assert error["message"] == "Resource 'weather://today' not found"

    @pytest.mark.asyncio
    async def test_reader_fault(self):
        response = await _make_router().route(_request("resources/read", {"uri": "broken://x"}))
        error = response.to_dict()["error"]

        assert error == {"code": -32603, "message": "Resource read error", "data": "disk gone"}

#!/usr/bin/env python3
# src/mcp_sse_relay/protocol/router.py
"""
Message router - turns one request envelope into exactly one response envelope.

Requests move through received -> classified -> dispatched -> responded. The
router holds no per-request state, so many requests may be in flight at once.
Notifications (envelopes without an id) are dispatched but answered with None.
"""

import asyncio
import logging
from typing import Any

from ..constants import (
    HANDSHAKE_METHODS,
    KEY_CAPABILITIES,
    KEY_CLIENT_INFO,
    KEY_ID,
    KEY_METHOD,
    KEY_PARAMS,
    KEY_PROTOCOL_VERSION,
    KEY_SERVER_INFO,
    MCP_PROTOCOL_VERSION,
    MSG_INTERNAL_ERROR,
    MSG_RESOURCE_READ_ERROR,
    MSG_TOOL_EXECUTION_ERROR,
    SERVER_NAME,
    SERVER_VERSION,
    JsonRpcError,
    McpMethod,
)
from ..errors import MethodNotFoundError, RelayError, ResourceNotFoundError, ToolNotFoundError
from ..registry import HandlerRegistry
from ..types import ResponseEnvelope, ToolExecutionError

logger = logging.getLogger(__name__)


class MessageRouter:
    """Classify and dispatch request envelopes against a handler registry."""

    def __init__(self, registry: HandlerRegistry, server_info: dict[str, str] | None = None):
        self.registry = registry
        self.server_info = server_info or {"name": SERVER_NAME, "version": SERVER_VERSION}

    async def route(self, message: Any, session_id: str | None = None) -> ResponseEnvelope | None:
        """Produce the response for ``message``, or None if it is a notification."""
        if not isinstance(message, dict):
            logger.debug(f"Rejecting non-object envelope for session {session_id}")
            return ResponseEnvelope.failure(
                None, JsonRpcError.INTERNAL_ERROR, MSG_INTERNAL_ERROR, "Invalid request envelope"
            )

        msg_id = message.get(KEY_ID)
        is_notification = KEY_ID not in message
        method = message.get(KEY_METHOD)
        params = message.get(KEY_PARAMS) or {}

        logger.debug(f"Handling {method} (ID: {msg_id}) for session {session_id}")

        try:
            if not isinstance(method, str) or not method:
                raise MethodNotFoundError(method)
            if not isinstance(params, dict):
                raise RelayError(MSG_INTERNAL_ERROR, data="params must be an object")

            if method in HANDSHAKE_METHODS:
                result = self._handle_handshake(method, params)
            elif method == McpMethod.TOOLS_CALL:
                result = await self._handle_tools_call(params, session_id)
            elif method == McpMethod.RESOURCES_READ:
                result = await self._handle_resources_read(params, session_id)
            else:
                raise MethodNotFoundError(method)

            response = ResponseEnvelope.success(msg_id, result)

        except asyncio.CancelledError:
            raise
        except RelayError as e:
            response = ResponseEnvelope.from_error(msg_id, e)
        except Exception as e:
            logger.error(f"Unexpected error routing {method}: {e}", exc_info=True)
            response = ResponseEnvelope.failure(msg_id, JsonRpcError.INTERNAL_ERROR, MSG_INTERNAL_ERROR, str(e))

        if is_notification:
            if response.is_error:
                logger.debug(f"Notification {method} failed: {response.error.message}")
            return None
        return response

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    def _handle_handshake(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        if method == McpMethod.INITIALIZE:
            client_info = params.get(KEY_CLIENT_INFO) or {}
            logger.info(f"Initialize from {client_info.get('name', 'unknown client')}")
            return {
                KEY_PROTOCOL_VERSION: MCP_PROTOCOL_VERSION,
                KEY_CAPABILITIES: {"tools": {}, "resources": {}},
                KEY_SERVER_INFO: dict(self.server_info),
            }
        if method == McpMethod.INITIALIZED:
            logger.debug("Initialized notification received")
        return {}

    # ------------------------------------------------------------------
    # Capability invocation
    # ------------------------------------------------------------------

    async def _handle_tools_call(self, params: dict[str, Any], session_id: str | None) -> dict[str, Any]:
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        tool = self.registry.lookup(tool_name) if isinstance(tool_name, str) else None
        if tool is None:
            raise ToolNotFoundError(tool_name, self.registry.tool_names())

        try:
            return await tool.execute(arguments)
        except asyncio.CancelledError:
            raise
        except ToolExecutionError as e:
            logger.error(f"Tool '{tool_name}' failed for session {session_id}: {e.fault_message}")
            raise RelayError(MSG_TOOL_EXECUTION_ERROR, data=e.fault_message) from e
        except Exception as e:
            logger.error(f"Tool '{tool_name}' failed for session {session_id}: {e}")
            raise RelayError(MSG_TOOL_EXECUTION_ERROR, data=str(e)) from e

    async def _handle_resources_read(self, params: dict[str, Any], session_id: str | None) -> dict[str, Any]:
        uri = params.get("uri")

        resource = self.registry.match_resource(uri) if isinstance(uri, str) else None
        if resource is None:
            raise ResourceNotFoundError(uri)

        try:
            return await resource.read(uri)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Resource '{resource.name}' failed to read {uri} for session {session_id}: {e}")
            raise RelayError(MSG_RESOURCE_READ_ERROR, data=str(e)) from e

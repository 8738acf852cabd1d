#!/usr/bin/env python3
"""
Top-level constants shared across the mcp_sse_relay package.
"""

from enum import IntEnum

# ---------------------------------------------------------------------------
# JSON-RPC
# ---------------------------------------------------------------------------
JSONRPC_VERSION = "2.0"

# JSON-RPC message keys
KEY_METHOD = "method"
KEY_PARAMS = "params"
KEY_ID = "id"


class JsonRpcError(IntEnum):
    """JSON-RPC 2.0 error codes used by the relay."""

    METHOD_NOT_FOUND = -32601
    INTERNAL_ERROR = -32603


# Error messages carried in response envelopes
MSG_METHOD_NOT_FOUND = "Method not found"
MSG_INTERNAL_ERROR = "Internal error"
MSG_TOOL_EXECUTION_ERROR = "Tool execution error"
MSG_RESOURCE_READ_ERROR = "Resource read error"


# ---------------------------------------------------------------------------
# Protocol methods
# ---------------------------------------------------------------------------
class McpMethod:
    INITIALIZE = "initialize"
    INITIALIZED = "notifications/initialized"
    PING = "ping"
    TOOLS_CALL = "tools/call"
    RESOURCES_READ = "resources/read"


HANDSHAKE_METHODS = frozenset({McpMethod.INITIALIZE, McpMethod.INITIALIZED, McpMethod.PING})

MCP_PROTOCOL_VERSION = "2024-11-05"

KEY_CLIENT_INFO = "clientInfo"
KEY_PROTOCOL_VERSION = "protocolVersion"
KEY_SERVER_INFO = "serverInfo"
KEY_CAPABILITIES = "capabilities"


# ---------------------------------------------------------------------------
# Push channel events
# ---------------------------------------------------------------------------
EVENT_CONNECTED = "connected"
EVENT_SERVER_STATUS = "server-status"
EVENT_MCP_MESSAGE = "mcp-message"
EVENT_DISCONNECTED = "disconnected"

STATUS_STARTING = "starting"
STATUS_STARTED = "started"
STATUS_ERROR = "error"

KEEPALIVE_FRAME = ":heartbeat\n\n"
DEFAULT_KEEPALIVE_INTERVAL = 15.0


# ---------------------------------------------------------------------------
# Client timing
# ---------------------------------------------------------------------------
CLIENT_REQUEST_TIMEOUT = 20.0
CLIENT_CONNECT_TIMEOUT = 15.0


# ---------------------------------------------------------------------------
# Content types
# ---------------------------------------------------------------------------
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_PLAIN = "text/plain"
CONTENT_TYPE_SSE = "text/event-stream"


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------
ENV_HOST = "HOST"
ENV_PORT = "PORT"
ENV_MCP_SERVER_NAME = "MCP_SERVER_NAME"
ENV_MCP_SERVER_VERSION = "MCP_SERVER_VERSION"
ENV_MCP_LOG_LEVEL = "MCP_LOG_LEVEL"
ENV_MCP_KEEPALIVE_INTERVAL = "MCP_KEEPALIVE_INTERVAL"
ENV_MCP_SESSION_TTL = "MCP_SESSION_TTL"
ENV_STUDENTS_CSV = "STUDENTS_CSV"
ENV_GOOGLE_API_KEY = "GOOGLE_API_KEY"


# ---------------------------------------------------------------------------
# Network defaults
# ---------------------------------------------------------------------------
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000


# ---------------------------------------------------------------------------
# Server identity
# ---------------------------------------------------------------------------
SERVER_NAME = "demo-server"
SERVER_VERSION = "1.0.0"
PACKAGE_LOGGER = "mcp_sse_relay"
SESSION_ID_PREFIX = "session_"

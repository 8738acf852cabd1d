#!/usr/bin/env python3
"""
Endpoint constants - HTTP status codes, pre-computed headers, response
messages and URL paths.
"""

from enum import IntEnum

from mcp_sse_relay.constants import CONTENT_TYPE_JSON  # noqa: F401


# ---------------------------------------------------------------------------
# HTTP status codes
# ---------------------------------------------------------------------------
class HttpStatus(IntEnum):
    OK = 200
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500


# ---------------------------------------------------------------------------
# Pre-computed header dicts
# ---------------------------------------------------------------------------
HEADERS_CORS_NOCACHE = {
    "Access-Control-Allow-Origin": "*",
    "Cache-Control": "no-cache",
}

HEADERS_HEALTH = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "X-Health-Check": "true",
}


# ---------------------------------------------------------------------------
# Response bodies and messages
# ---------------------------------------------------------------------------
STATUS_MESSAGE_PROCESSED = "message processed"
ERROR_SESSION_NOT_FOUND = "Session not found"
ERROR_INVALID_JSON = "Invalid JSON"


# ---------------------------------------------------------------------------
# URL paths
# ---------------------------------------------------------------------------
PATH_SSE = "/sse"
PATH_MCP_MESSAGE = "/mcp/{session_id}"
PATH_TOOLS = "/tools"
PATH_RESOURCES = "/resources"
PATH_STATUS = "/status"
PATH_HEALTH = "/health"

QUERY_SESSION_ID = "sessionId"

#!/usr/bin/env python3
"""
HTTP endpoints of the relay.
"""

from .health import health_endpoint
from .info import resources_endpoint, status_endpoint, tools_endpoint
from .mcp import mcp_message_endpoint
from .sse import sse_endpoint

__all__ = [
    "health_endpoint",
    "mcp_message_endpoint",
    "resources_endpoint",
    "sse_endpoint",
    "status_endpoint",
    "tools_endpoint",
]

#!/usr/bin/env python3
"""
mcp_sse_relay - A session-oriented JSON-RPC relay over HTTP POST and Server-Sent Events

Clients open a push channel, submit envelopes for their session and receive
the responses as ``mcp-message`` events:

    from mcp_sse_relay import RelayConfig, create_app

    app = create_app(RelayConfig.from_env())

    # or, from the command line
    #   mcp-sse-relay --port 3000

Custom tools go through the registry:

    from mcp_sse_relay import HandlerRegistry, ToolHandler, create_app

    def hello(name: str) -> str:
        return f"Hello, {name}!"

    registry = HandlerRegistry()
    registry.register_tool(ToolHandler.from_function(hello))
    app = create_app(registry=registry)
"""

from .app import create_app
from .client import RelayClient, RelayClientError, RelayRequestError
from .config import RelayConfig
from .errors import RelayError
from .protocol import MessageRouter, SessionController, SessionTable
from .registry import HandlerRegistry
from .transport import PushChannel
from .types import ResourceHandler, ToolHandler, ToolParameter

__version__ = "1.0.0"
__all__ = [
    "create_app",
    "RelayConfig",
    "HandlerRegistry",
    "ToolHandler",
    "ResourceHandler",
    "ToolParameter",
    "PushChannel",
    "SessionTable",
    "SessionController",
    "MessageRouter",
    "RelayClient",
    "RelayClientError",
    "RelayRequestError",
    "RelayError",
]

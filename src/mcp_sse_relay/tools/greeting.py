#!/usr/bin/env python3
# src/mcp_sse_relay/tools/greeting.py
"""
Greeting resource - ``greeting://<name>`` reads as ``Hello, <name>!``.
"""

from urllib.parse import SplitResult, unquote

from ..types import ResourceHandler

GREETING_TEMPLATE = "greeting://"


def greeting_name(uri: SplitResult) -> str:
    return unquote(f"{uri.netloc}{uri.path}".strip("/"))


def read_greeting(uri: SplitResult) -> dict:
    return {
        "contents": [
            {
                "uri": uri.geturl(),
                "mimeType": "text/plain",
                "text": f"Hello, {greeting_name(uri)}!",
            }
        ]
    }


def create_resource() -> ResourceHandler:
    return ResourceHandler.from_function(
        GREETING_TEMPLATE,
        read_greeting,
        name="greeting",
        title="Greeting Resource",
        description="Dynamic greeting generator",
    )

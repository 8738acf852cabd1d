#!/usr/bin/env python3
# src/mcp_sse_relay/transport/__init__.py
"""
Transport package - the SSE push channel.
"""

from .sse import SSE_HEADERS, ChannelState, PushChannel, format_event

__all__ = ["SSE_HEADERS", "ChannelState", "PushChannel", "format_event"]

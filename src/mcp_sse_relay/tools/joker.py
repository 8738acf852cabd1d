#!/usr/bin/env python3
# src/mcp_sse_relay/tools/joker.py
"""Joke tool."""

from ..types import ToolHandler


async def joker(topic: str) -> str:
    """tell me joke about the topic"""
    return f"I will tell you a joke about {topic}"


def create_tool() -> ToolHandler:
    return ToolHandler.from_function(joker, title="tell me joke")

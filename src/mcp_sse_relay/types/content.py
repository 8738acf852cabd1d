#!/usr/bin/env python3
# src/mcp_sse_relay/types/content.py
"""
Content - Normalisation of handler return values into MCP content results
"""

from typing import Any, Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field


class TextContent(BaseModel):
    """A single text content item."""

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Result body of a ``tools/call`` response."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    content: list[dict[str, Any]] = Field(default_factory=list)
    is_error: bool | None = Field(default=None, alias="isError")


class ResourceContents(BaseModel):
    """One entry of a ``resources/read`` result."""

    model_config = ConfigDict(populate_by_name=True)

    uri: str
    mime_type: str | None = Field(default=None, alias="mimeType")
    text: str


def text_result(text: str, is_error: bool = False) -> dict[str, Any]:
    """Build a tool result carrying one text item."""
    result = ToolResult(content=[TextContent(text=text).model_dump()], is_error=True if is_error else None)
    return result.model_dump(by_alias=True, exclude_none=True)


def format_content(content: Any) -> list[dict[str, Any]]:
    """Format arbitrary handler output as a list of content items."""
    if isinstance(content, str):
        return [TextContent(text=content).model_dump()]
    if isinstance(content, TextContent):
        return [content.model_dump()]
    if isinstance(content, BaseModel):
        json_str = orjson.dumps(content.model_dump(by_alias=True), option=orjson.OPT_INDENT_2).decode()
        return [TextContent(text=json_str).model_dump()]
    if isinstance(content, dict):
        json_str = orjson.dumps(content, option=orjson.OPT_INDENT_2).decode()
        return [TextContent(text=json_str).model_dump()]
    if isinstance(content, list):
        items: list[dict[str, Any]] = []
        for item in content:
            items.extend(format_content(item))
        return items
    return [TextContent(text=str(content)).model_dump()]


def format_tool_result(result: Any) -> dict[str, Any]:
    """Normalise a tool return value into ``{"content": [...], "isError"?}``.

    Results already shaped as ``{"content": [...]}`` pass through unchanged.
    """
    if isinstance(result, ToolResult):
        return result.model_dump(by_alias=True, exclude_none=True)
    if isinstance(result, dict) and isinstance(result.get("content"), list):
        return result
    return {"content": format_content(result)}


def format_resource_result(uri: str, result: Any, mime_type: str | None = None) -> dict[str, Any]:
    """Normalise a resource reader's return value into ``{"contents": [...]}``."""
    if isinstance(result, dict) and isinstance(result.get("contents"), list):
        return result
    if isinstance(result, dict | list):
        text = orjson.dumps(result, option=orjson.OPT_INDENT_2).decode()
    else:
        text = str(result)
    entry = ResourceContents(uri=uri, mime_type=mime_type, text=text)
    return {"contents": [entry.model_dump(by_alias=True, exclude_none=True)]}


__all__ = [
    "TextContent",
    "ToolResult",
    "ResourceContents",
    "text_result",
    "format_content",
    "format_tool_result",
    "format_resource_result",
]

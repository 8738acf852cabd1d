#!/usr/bin/env python3
# src/mcp_sse_relay/types/__init__.py
"""
Types package - descriptors, envelopes, content helpers and handler errors.
"""

from .content import (
    ResourceContents,
    TextContent,
    ToolResult,
    format_content,
    format_resource_result,
    format_tool_result,
    text_result,
)
from .envelopes import ErrorObject, RequestEnvelope, ResponseEnvelope
from .errors import ParameterValidationError, ToolExecutionError
from .handlers import ResourceHandler, ToolHandler
from .parameters import ToolParameter, build_input_schema

__all__ = [
    # Descriptors
    "ToolHandler",
    "ResourceHandler",
    "ToolParameter",
    "build_input_schema",
    # Envelopes
    "ErrorObject",
    "RequestEnvelope",
    "ResponseEnvelope",
    # Content
    "TextContent",
    "ToolResult",
    "ResourceContents",
    "text_result",
    "format_content",
    "format_tool_result",
    "format_resource_result",
    # Errors
    "ParameterValidationError",
    "ToolExecutionError",
]

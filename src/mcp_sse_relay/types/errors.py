#!/usr/bin/env python3
# src/mcp_sse_relay/types/errors.py
"""
Errors - Validation and execution errors raised by handler descriptors

The router turns both into -32603 envelopes; the detail travels in ``data``.
"""

from typing import Any

from ..errors import RelayError


class ParameterValidationError(RelayError):
    """Specific error for parameter validation."""

    def __init__(self, parameter: str, expected_type: str, received: Any, reason: str | None = None):
        self.parameter = parameter
        message = f"Invalid parameter '{parameter}': expected {expected_type}, got {type(received).__name__}"
        if reason:
            message = f"{message} ({reason})"
        data = {"parameter": parameter, "expected": expected_type, "received": type(received).__name__}
        super().__init__(message, data=data)


class ToolExecutionError(RelayError):
    """Error during tool execution."""

    def __init__(self, tool_name: str, error: Exception):
        self.tool_name = tool_name
        self.original = error
        message = f"Tool '{tool_name}' execution failed: {error}"
        data = {"tool": tool_name, "error_type": type(error).__name__, "error_message": str(error)}
        super().__init__(message, data=data)

    @property
    def fault_message(self) -> str:
        """Message of the underlying fault, as reported to clients."""
        return str(self.original)


__all__ = ["ParameterValidationError", "ToolExecutionError"]

"""
Structured error types for the relay.

Each error knows its JSON-RPC code and renders itself into the ``error``
member of a response envelope.
"""

from difflib import get_close_matches
from typing import Any

from .constants import MSG_METHOD_NOT_FOUND, JsonRpcError


class RelayError(Exception):
    """Base error carrying a JSON-RPC code and optional diagnostic data."""

    def __init__(self, message: str, code: int = JsonRpcError.INTERNAL_ERROR, data: Any = None):
        self.code = int(code)
        self.data = data
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)

    def to_error(self) -> dict[str, Any]:
        """Render as the ``error`` object of a response envelope."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class MethodNotFoundError(RelayError):
    """The envelope names a method the router does not serve."""

    def __init__(self, method: Any = None):
        self.method = method
        super().__init__(MSG_METHOD_NOT_FOUND, code=JsonRpcError.METHOD_NOT_FOUND)


class ToolNotFoundError(RelayError):
    """No tool is registered under the requested name."""

    def __init__(self, tool_name: Any, available_tools: list[str] | None = None):
        self.tool_name = tool_name
        data = None
        suggestion = suggest_tool_name(str(tool_name), available_tools or [])
        if suggestion:
            data = {"suggestion": suggestion}
        super().__init__(f"Tool '{tool_name}' not found", code=JsonRpcError.METHOD_NOT_FOUND, data=data)


class ResourceNotFoundError(RelayError):
    """No registered resource template prefixes the requested URI."""

    def __init__(self, uri: Any):
        self.uri = uri
        super().__init__(f"Resource '{uri}' not found", code=JsonRpcError.METHOD_NOT_FOUND)


class SessionNotFoundError(RelayError):
    """A submission referenced a session id that is not in the table.

    Surfaced as HTTP 404 at the submission boundary, never as an envelope.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__("Session not found")


def suggest_tool_name(tool_name: str, available_tools: list[str]) -> str | None:
    """Find the closest matching tool name using fuzzy matching.

    Args:
        tool_name: The unknown tool name.
        available_tools: List of registered tool names.

    Returns:
        The closest match, or None if no good match found.
    """
    matches = get_close_matches(tool_name, available_tools, n=1, cutoff=0.6)
    return matches[0] if matches else None

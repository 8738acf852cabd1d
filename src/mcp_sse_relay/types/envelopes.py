#!/usr/bin/env python3
# src/mcp_sse_relay/types/envelopes.py
"""
Envelopes - JSON-RPC request and response messages

A response envelope always carries the request id verbatim and exactly one
of ``result`` or ``error``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import JSONRPC_VERSION
from ..errors import RelayError


class ErrorObject(BaseModel):
    """The ``error`` member of a response envelope."""

    code: int
    message: str
    data: Any = None

    @classmethod
    def from_exception(cls, error: RelayError) -> "ErrorObject":
        return cls(**error.to_error())

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class RequestEnvelope(BaseModel):
    """An inbound request or notification."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    method: str
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        """Notifications carry no id and expect no response."""
        return "id" not in self.model_fields_set

    def to_dict(self) -> dict[str, Any]:
        """Wire form; notifications omit ``id`` entirely."""
        message: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method, "params": self.params}
        if not self.is_notification:
            message["id"] = self.id
        return message


class ResponseEnvelope(BaseModel):
    """An outbound response; exactly one of ``result`` or ``error`` is set."""

    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    result: Any = None
    error: ErrorObject | None = None

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> "ResponseEnvelope":
        if (self.result is None) == (self.error is None):
            raise ValueError("response envelope must carry exactly one of result or error")
        return self

    @classmethod
    def success(cls, request_id: Any, result: Any) -> "ResponseEnvelope":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: Any, code: int, message: str, data: Any = None) -> "ResponseEnvelope":
        return cls(id=request_id, error=ErrorObject(code=code, message=message, data=data))

    @classmethod
    def from_error(cls, request_id: Any, error: RelayError) -> "ResponseEnvelope":
        return cls(id=request_id, error=ErrorObject.from_exception(error))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        """Wire form; ``id`` is always present, even when null."""
        message: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.to_dict()
        else:
            message["result"] = self.result
        return message


__all__ = ["ErrorObject", "RequestEnvelope", "ResponseEnvelope"]

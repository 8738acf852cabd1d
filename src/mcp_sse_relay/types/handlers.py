#!/usr/bin/env python3
# src/mcp_sse_relay/types/handlers.py
"""
Handlers - Tool and resource descriptors sharing one execution contract

A ``ToolHandler`` wraps a plain (sync or async) function with its declared
parameter schema; ``execute`` validates and converts the arguments before
calling it. A ``ResourceHandler`` wraps a reader that receives the parsed URI.
"""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import SplitResult, urlsplit

import orjson

from ..constants import CONTENT_TYPE_PLAIN
from .content import format_resource_result, format_tool_result
from .errors import ParameterValidationError, ToolExecutionError
from .parameters import ToolParameter, build_input_schema, extract_parameters_from_function

logger = logging.getLogger(__name__)

_TRUE_STRINGS = ("true", "1", "yes", "on", "t", "y")
_FALSE_STRINGS = ("false", "0", "no", "off", "f", "n")


# ============================================================================
# Tool Handler
# ============================================================================


@dataclass
class ToolHandler:
    """A named tool: descriptor data plus the function that implements it."""

    name: str
    handler: Callable[..., Any]
    parameters: list[ToolParameter] = field(default_factory=list)
    title: str | None = None
    description: str | None = None
    validate_arguments: bool = True
    _cached_schema: dict[str, Any] | None = field(default=None, repr=False)

    @classmethod
    def from_function(
        cls,
        func: Callable[..., Any],
        name: str | None = None,
        title: str | None = None,
        description: str | None = None,
        parameters: list[ToolParameter] | None = None,
        validate_arguments: bool = True,
    ) -> "ToolHandler":
        """Create a ToolHandler from a function, inferring parameters if none are declared.

        With ``validate_arguments=False`` the declared parameters only describe the
        schema and the raw arguments are passed through for the handler to check.
        """
        tool_name = name or func.__name__
        tool_description = description or (inspect.getdoc(func) or "").split("\n")[0] or f"Execute {tool_name}"
        if parameters is None:
            parameters = extract_parameters_from_function(func)
        return cls(
            name=tool_name,
            handler=func,
            parameters=parameters,
            title=title or tool_name,
            description=tool_description,
            validate_arguments=validate_arguments,
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        if self._cached_schema is None:
            self._cached_schema = build_input_schema(self.parameters)
        return self._cached_schema

    def descriptor(self) -> dict[str, Any]:
        """Public listing entry."""
        return {"name": self.name, "title": self.title, "description": self.description}

    def _validate_and_convert_arguments(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate and convert arguments against the declared parameters."""
        validated_args = {}

        for param in self.parameters:
            value = arguments.get(param.name)

            if value is None:
                if param.required:
                    raise ParameterValidationError(param.name, param.type, None, "missing required parameter")
                if param.default is None:
                    continue
                value = param.default

            try:
                validated_args[param.name] = self._convert_type(value, param)
            except (ValueError, TypeError) as e:
                raise ParameterValidationError(param.name, param.type, value, str(e)) from e

        return validated_args

    def _convert_type(self, value: Any, param: ToolParameter) -> Any:
        """Convert value to the expected parameter type and check its constraints."""
        if param.type == "integer":
            if isinstance(value, bool):
                raise TypeError("boolean is not an integer")
            if isinstance(value, float):
                if not value.is_integer():
                    raise ValueError(f"Cannot convert float {value} to integer without precision loss")
                value = int(value)
            elif isinstance(value, str):
                float_val = float(value)
                if not float_val.is_integer():
                    raise ValueError(f"Cannot convert string '{value}' to integer without precision loss")
                value = int(float_val)
            else:
                value = int(value)

        elif param.type == "number":
            if isinstance(value, bool):
                raise TypeError("boolean is not a number")
            if isinstance(value, str):
                try:
                    value = float(value)
                except ValueError:
                    raise ValueError(f"Cannot convert string '{value}' to number") from None
            elif not isinstance(value, int | float):
                raise TypeError(f"Cannot convert {type(value).__name__} to number")

        elif param.type == "boolean":
            if isinstance(value, str):
                lower_val = value.lower()
                if lower_val in _TRUE_STRINGS:
                    value = True
                elif lower_val in _FALSE_STRINGS:
                    value = False
                else:
                    raise ValueError(f"Cannot convert string '{value}' to boolean")
            else:
                value = bool(value)

        elif param.type == "string":
            if not isinstance(value, str):
                value = str(value)

        elif param.type == "array":
            if isinstance(value, tuple | set):
                value = list(value)
            elif isinstance(value, str):
                try:
                    value = orjson.loads(value)
                except orjson.JSONDecodeError:
                    raise ValueError(f"Cannot convert string '{value}' to array") from None
            if not isinstance(value, list):
                raise ValueError(f"Cannot convert {type(value).__name__} to array")

        elif param.type == "object":
            if isinstance(value, str):
                try:
                    value = orjson.loads(value)
                except orjson.JSONDecodeError:
                    raise ValueError(f"Cannot convert string '{value}' to object") from None
            if not isinstance(value, dict):
                raise ValueError(f"Cannot convert {type(value).__name__} to object")

        if param.enum and value not in param.enum:
            raise ValueError(f"Value '{value}' must be one of {param.enum}")
        if param.minimum is not None and value < param.minimum:
            raise ValueError(f"Value {value} is below the minimum {param.minimum}")
        if param.maximum is not None and value > param.maximum:
            raise ValueError(f"Value {value} is above the maximum {param.maximum}")
        if param.min_length is not None and len(value) < param.min_length:
            raise ValueError(f"Value must have at least {param.min_length} characters")

        return value

    async def execute(self, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Validate arguments, run the handler and normalise its result."""
        if self.validate_arguments:
            validated_args = self._validate_and_convert_arguments(arguments or {})
        else:
            validated_args = dict(arguments or {})

        try:
            if inspect.iscoroutinefunction(self.handler):
                result = await self.handler(**validated_args)
            else:
                result = self.handler(**validated_args)
        except Exception as e:
            raise ToolExecutionError(self.name, e) from e

        return format_tool_result(result)


# ============================================================================
# Resource Handler
# ============================================================================


@dataclass
class ResourceHandler:
    """A named resource served for every URI that starts with ``template``."""

    name: str
    template: str
    handler: Callable[[SplitResult], Any]
    title: str | None = None
    description: str | None = None
    mime_type: str = CONTENT_TYPE_PLAIN

    @classmethod
    def from_function(
        cls,
        template: str,
        func: Callable[[SplitResult], Any],
        name: str | None = None,
        title: str | None = None,
        description: str | None = None,
        mime_type: str = CONTENT_TYPE_PLAIN,
    ) -> "ResourceHandler":
        resource_name = name or func.__name__
        return cls(
            name=resource_name,
            template=template,
            handler=func,
            title=title or resource_name.replace("_", " ").title(),
            description=description or inspect.getdoc(func) or f"Resource: {template}",
            mime_type=mime_type,
        )

    def matches(self, uri: str) -> bool:
        return uri.startswith(self.template)

    def descriptor(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "template": self.template,
        }

    async def read(self, uri: str) -> dict[str, Any]:
        """Read the resource for ``uri``; the reader receives the parsed URI."""
        parsed = urlsplit(uri)
        if inspect.iscoroutinefunction(self.handler):
            result = await self.handler(parsed)
        else:
            result = self.handler(parsed)
        return format_resource_result(uri, result, self.mime_type)


__all__ = ["ToolHandler", "ResourceHandler"]

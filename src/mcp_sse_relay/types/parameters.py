#!/usr/bin/env python3
# src/mcp_sse_relay/types/parameters.py
"""
Parameters - Declarative tool parameter definitions and JSON Schema generation

Each tool declares its fields as ``ToolParameter`` entries (primitive type plus
constraints). Functions without explicit declarations get their parameters
inferred from the signature.
"""

import inspect
import typing
from dataclasses import dataclass
from types import UnionType
from typing import Any, Union

_TYPE_MAP = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


@dataclass
class ToolParameter:
    """One field of a tool's input schema."""

    name: str
    type: str = "string"
    description: str | None = None
    required: bool = True
    default: Any = None
    enum: list[Any] | None = None
    minimum: float | None = None
    maximum: float | None = None
    min_length: int | None = None
    items_type: str | None = None

    @classmethod
    def from_annotation(cls, name: str, annotation: Any, default: Any = inspect.Parameter.empty) -> "ToolParameter":
        """Create parameter from a function signature annotation."""
        enum_values = None
        items_type = None

        origin = typing.get_origin(annotation)
        args = typing.get_args(annotation)

        if annotation in _TYPE_MAP:
            param_type = _TYPE_MAP[annotation]
        elif origin is Union or origin is UnionType:
            non_none = [arg for arg in args if arg is not type(None)]
            if all(arg in (int, float) for arg in non_none):
                param_type = "number" if float in non_none else "integer"
            else:
                param_type = _TYPE_MAP.get(non_none[0], "string") if len(non_none) == 1 else "string"
        elif origin is typing.Literal:
            param_type = "string"
            enum_values = list(args)
        elif origin is list:
            param_type = "array"
            if args:
                items_type = _TYPE_MAP.get(args[0], "string")
        elif origin is dict:
            param_type = "object"
        else:
            param_type = "string"

        required = default is inspect.Parameter.empty
        return cls(
            name=name,
            type=param_type,
            required=required,
            default=None if required else default,
            enum=enum_values,
            items_type=items_type,
        )

    def to_json_schema(self) -> dict[str, Any]:
        """Convert to JSON Schema."""
        schema: dict[str, Any] = {"type": self.type}
        if self.type == "array" and self.items_type:
            schema["items"] = {"type": self.items_type}
        if self.description:
            schema["description"] = self.description
        if self.enum:
            schema["enum"] = self.enum
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        if self.min_length is not None:
            schema["minLength"] = self.min_length
        if self.default is not None:
            schema["default"] = self.default
        return schema


def build_input_schema(parameters: list[ToolParameter]) -> dict[str, Any]:
    """Build JSON Schema input schema from parameters."""
    properties = {}
    required = []

    for param in parameters:
        properties[param.name] = param.to_json_schema()
        if param.required:
            required.append(param.name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def extract_parameters_from_function(func: Any) -> list[ToolParameter]:
    """Extract parameters from a function signature."""
    sig = inspect.signature(func)
    parameters = []

    for param_name, param in sig.parameters.items():
        if param_name == "self":
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        parameters.append(
            ToolParameter.from_annotation(
                name=param_name,
                annotation=param.annotation if param.annotation != inspect.Parameter.empty else str,
                default=param.default,
            )
        )

    return parameters


__all__ = [
    "ToolParameter",
    "build_input_schema",
    "extract_parameters_from_function",
]

#!/usr/bin/env python3
"""Tests for the handler registry and the descriptors it holds."""

import pytest

from mcp_sse_relay.registry import HandlerRegistry
from mcp_sse_relay.tools import create_default_registry
from mcp_sse_relay.types import ParameterValidationError, ResourceHandler, ToolHandler, ToolParameter

# ============================================================================
# Helpers
# ============================================================================


def echo(text: str, times: int = 1) -> str:
    """Repeat the text.

    Longer explanation that should not reach the descriptor.
    """
    return text * times


def _read_note(uri):
    return f"note for {uri.netloc}"


# ============================================================================
# Registry
# ============================================================================


class TestHandlerRegistry:
    def test_register_and_lookup(self):
        registry = HandlerRegistry()
        tool = ToolHandler.from_function(echo)
        registry.register_tool(tool)

        assert registry.lookup("echo") is tool
        assert registry.lookup("missing") is None
        assert registry.tool_names() == ["echo"]

    def test_last_registration_wins(self):
        registry = HandlerRegistry()
        registry.register_tool(ToolHandler.from_function(echo, title="first"))
        registry.register_tool(ToolHandler.from_function(echo, title="second"))

        assert len(registry.tools) == 1
        assert registry.lookup("echo").title == "second"

    def test_list_tools_descriptor_shape(self):
        registry = HandlerRegistry()
        registry.register_tool(ToolHandler.from_function(echo))

        assert registry.list_tools() == [{"name": "echo", "title": "echo", "description": "Repeat the text."}]

    def test_match_resource_by_prefix(self):
        registry = HandlerRegistry()
        registry.register_resource(ResourceHandler.from_function("note://", _read_note, name="note"))

        assert registry.match_resource("note://today").name == "note"
        assert registry.match_resource("other://today") is None
        assert registry.lookup_resource("note").template == "note://"

    def test_list_resources_includes_template(self):
        registry = HandlerRegistry()
        registry.register_resource(
            ResourceHandler.from_function("note://", _read_note, name="note", title="Notes", description="Daily notes")
        )

        assert registry.list_resources() == [
            {"name": "note", "title": "Notes", "description": "Daily notes", "template": "note://"}
        ]

    def test_default_registry(self):
        registry = create_default_registry()

        assert registry.tool_names() == ["joker", "calculator", "student_grades", "currency_exchange", "llm"]
        assert registry.resource_names() == ["greeting"]
        assert len(registry) == 6


# ============================================================================
# Tool descriptors
# ============================================================================


class TestToolHandler:
    def test_schema_inferred_from_signature(self):
        tool = ToolHandler.from_function(echo)

        assert tool.input_schema == {
            "type": "object",
            "properties": {
                "text": {"type": "string"},
                "times": {"type": "integer", "default": 1},
            },
            "required": ["text"],
        }

    def test_declared_parameters_override_inference(self):
        tool = ToolHandler.from_function(
            echo,
            parameters=[ToolParameter("text", "string", "What to repeat", min_length=1)],
        )

        schema = tool.input_schema
        assert schema["properties"] == {"text": {"type": "string", "description": "What to repeat", "minLength": 1}}

    @pytest.mark.asyncio
    async def test_execute_converts_arguments(self):
        tool = ToolHandler.from_function(echo)
        result = await tool.execute({"text": "ab", "times": "3"})

        assert result == {"content": [{"type": "text", "text": "ababab"}]}

    @pytest.mark.asyncio
    async def test_execute_applies_defaults(self):
        tool = ToolHandler.from_function(echo)
        result = await tool.execute({"text": "ab"})

        assert result["content"][0]["text"] == "ab"

    @pytest.mark.asyncio
    async def test_missing_required_argument(self):
        tool = ToolHandler.from_function(echo)

        with pytest.raises(ParameterValidationError, match="Invalid parameter 'text'"):
            await tool.execute({})

    @pytest.mark.asyncio
    async def test_enum_and_range_constraints(self):
        def pick(colour: str, level: float) -> str:
            return f"{colour}:{level}"

        tool = ToolHandler.from_function(
            pick,
            parameters=[
                ToolParameter("colour", "string", enum=["red", "green"]),
                ToolParameter("level", "number", minimum=0, maximum=1),
            ],
        )

        assert (await tool.execute({"colour": "red", "level": 0.5}))["content"][0]["text"] == "red:0.5"
        with pytest.raises(ParameterValidationError):
            await tool.execute({"colour": "blue", "level": 0.5})
        with pytest.raises(ParameterValidationError):
            await tool.execute({"colour": "red", "level": 2})

    @pytest.mark.asyncio
    async def test_dict_results_are_rendered_as_json_text(self):
        def stats() -> dict:
            return {"count": 2}

        result = await ToolHandler.from_function(stats).execute({})
        assert result["content"][0]["text"] == '{\n  "count": 2\n}'

    @pytest.mark.asyncio
    async def test_content_results_pass_through(self):
        def shaped() -> dict:
            return {"content": [{"type": "text", "text": "ok"}], "isError": True}

        result = await ToolHandler.from_function(shaped).execute({})
        assert result == {"content": [{"type": "text", "text": "ok"}], "isError": True}


# ============================================================================
# Resource descriptors
# ============================================================================


class TestResourceHandler:
    @pytest.mark.asyncio
    async def test_read_wraps_plain_text(self):
        resource = ResourceHandler.from_function("note://", _read_note, name="note")
        result = await resource.read("note://today")

        assert result == {"contents": [{"uri": "note://today", "mimeType": "text/plain", "text": "note for today"}]}

    @pytest.mark.asyncio
    async def test_async_reader(self):
        async def read_async(uri):
            return {"contents": [{"uri": uri.geturl(), "text": "async"}]}

        resource = ResourceHandler.from_function("async://", read_async)
        result = await resource.read("async://x")

        assert result["contents"][0]["text"] == "async"

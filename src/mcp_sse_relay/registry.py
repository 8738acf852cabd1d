#!/usr/bin/env python3
# src/mcp_sse_relay/registry.py
"""
Handler registry - name to descriptor lookup for tools and resources.

One registry is built at startup and shared read-only by every session.
"""

import logging
from typing import Any

from .types import ResourceHandler, ToolHandler

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Tools and resources keyed by name; the last registration for a name wins."""

    def __init__(self) -> None:
        self.tools: dict[str, ToolHandler] = {}
        self.resources: dict[str, ResourceHandler] = {}

    def register_tool(self, tool: ToolHandler) -> None:
        """Register a tool handler."""
        if tool.name in self.tools:
            logger.debug(f"Replacing tool: {tool.name}")
        self.tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def register_resource(self, resource: ResourceHandler) -> None:
        """Register a resource handler."""
        if resource.name in self.resources:
            logger.debug(f"Replacing resource: {resource.name}")
        self.resources[resource.name] = resource
        logger.debug(f"Registered resource: {resource.name} ({resource.template})")

    def lookup(self, name: str) -> ToolHandler | None:
        return self.tools.get(name)

    def lookup_resource(self, name: str) -> ResourceHandler | None:
        return self.resources.get(name)

    def match_resource(self, uri: str) -> ResourceHandler | None:
        """First registered resource whose template is a prefix of ``uri``."""
        for resource in self.resources.values():
            if resource.matches(uri):
                return resource
        return None

    def tool_names(self) -> list[str]:
        return list(self.tools)

    def resource_names(self) -> list[str]:
        return list(self.resources)

    def list_tools(self) -> list[dict[str, Any]]:
        return [tool.descriptor() for tool in self.tools.values()]

    def list_resources(self) -> list[dict[str, Any]]:
        return [resource.descriptor() for resource in self.resources.values()]

    def __len__(self) -> int:
        return len(self.tools) + len(self.resources)

#!/usr/bin/env python3
# src/mcp_sse_relay/tools/__init__.py
"""
Built-in tools and resources served by the relay.
"""

import logging
from typing import TYPE_CHECKING

from ..registry import HandlerRegistry
from . import calculator, currency_exchange, greeting, joker, llm, student_grades

if TYPE_CHECKING:
    from ..config import RelayConfig

logger = logging.getLogger(__name__)


def register_defaults(registry: HandlerRegistry, config: "RelayConfig | None" = None) -> HandlerRegistry:
    """Register every built-in tool and resource on ``registry``."""
    students_csv = config.students_csv if config else None
    api_key = config.google_api_key if config else None

    registry.register_tool(joker.create_tool())
    registry.register_tool(calculator.create_tool())
    registry.register_tool(student_grades.create_tool(students_csv))
    registry.register_tool(currency_exchange.create_tool())
    registry.register_tool(llm.create_tool(api_key=api_key))
    registry.register_resource(greeting.create_resource())

    logger.debug(f"Registered {len(registry.tools)} tools and {len(registry.resources)} resources")
    return registry


def create_default_registry(config: "RelayConfig | None" = None) -> HandlerRegistry:
    return register_defaults(HandlerRegistry(), config)


__all__ = ["register_defaults", "create_default_registry"]

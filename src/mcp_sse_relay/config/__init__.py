#!/usr/bin/env python3
# src/mcp_sse_relay/config/__init__.py
"""
Configuration package.
"""

from .environment_detector import EnvironmentDetector
from .smart_config import RelayConfig

__all__ = ["EnvironmentDetector", "RelayConfig"]

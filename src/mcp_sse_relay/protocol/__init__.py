#!/usr/bin/env python3
# src/mcp_sse_relay/protocol/__init__.py
"""
Protocol package - session table, message router and session controller.
"""

from .controller import SessionController, generate_session_id
from .router import MessageRouter
from .session_table import Session, SessionTable

__all__ = ["MessageRouter", "Session", "SessionController", "SessionTable", "generate_session_id"]

#!/usr/bin/env python3
# src/mcp_sse_relay/protocol/controller.py
"""
Session endpoint controller - opens sessions and feeds submitted envelopes to the router.

Opening a session registers it, opens its push channel and reports startup
through ``server-status`` events. Responses to submitted envelopes go out on
the session's channel; the HTTP submission is acknowledged separately.
"""

import asyncio
import inspect
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from ..constants import (
    DEFAULT_KEEPALIVE_INTERVAL,
    MSG_INTERNAL_ERROR,
    SESSION_ID_PREFIX,
    STATUS_ERROR,
    STATUS_STARTED,
    STATUS_STARTING,
    JsonRpcError,
)
from ..errors import SessionNotFoundError
from ..registry import HandlerRegistry
from ..transport import PushChannel
from ..types import ResponseEnvelope
from .router import MessageRouter
from .session_table import Session, SessionTable

logger = logging.getLogger(__name__)

SessionInitializer = Callable[[Session], Awaitable[None] | None]

MSG_STARTING = "正在启动MCP服务器..."
MSG_STARTED = "MCP服务器已成功启动"
MSG_START_FAILED = "MCP服务器启动失败: {error}"


def generate_session_id() -> str:
    return f"{SESSION_ID_PREFIX}{int(time.time() * 1000)}"


class SessionController:
    """Create sessions, accept submissions for them and sweep them on shutdown."""

    def __init__(
        self,
        table: SessionTable,
        registry: HandlerRegistry,
        server_info: dict[str, str] | None = None,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        initializer: SessionInitializer | None = None,
    ):
        self.table = table
        self.registry = registry
        self.router = MessageRouter(registry, server_info)
        self.keepalive_interval = keepalive_interval
        self.initializer = initializer

    @property
    def server_info(self) -> dict[str, str]:
        return self.router.server_info

    # ------------------------------------------------------------------
    # Open path
    # ------------------------------------------------------------------

    def _allocate_id(self, session_id: str | None) -> str:
        if session_id:
            return session_id
        new_id = generate_session_id()
        if new_id in self.table:
            new_id = f"{new_id}_{uuid.uuid4().hex[:8]}"
        return new_id

    async def open_session(self, session_id: str | None = None) -> Session:
        """Register a new session and report its startup on the channel."""
        session_id = self._allocate_id(session_id)

        previous = self.table.get(session_id)
        if previous is not None:
            logger.info(f"Session {session_id} reconnected, closing previous channel")
            self.table.remove(session_id)
            previous.channel.close()

        channel = PushChannel(session_id, keepalive_interval=self.keepalive_interval)
        session = Session(id=session_id, channel=channel, registry=self.registry)
        self.table.put(session_id, session)

        channel.add_listener("closed", lambda _channel: self._discard(session))
        channel.add_listener("error", lambda _channel, _error: self._discard(session))

        channel.open()
        channel.send_status(STATUS_STARTING, MSG_STARTING, sessionId=session_id)

        try:
            await self._initialize(session)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to start session {session_id}: {e}")
            channel.send_status(STATUS_ERROR, MSG_START_FAILED.format(error=e), sessionId=session_id, error=str(e))
            channel.close()
            return session

        channel.send_status(
            STATUS_STARTED,
            MSG_STARTED,
            sessionId=session_id,
            serverInfo={
                **self.server_info,
                "tools": self.registry.tool_names(),
                "resources": self.registry.resource_names(),
            },
        )
        logger.info(f"Session {session_id} opened ({self.table.count()} active)")
        return session

    async def _initialize(self, session: Session) -> None:
        if self.initializer is None:
            return
        result = self.initializer(session)
        if inspect.isawaitable(result):
            await result

    def _discard(self, session: Session) -> None:
        # A reconnect may have replaced this entry; only drop our own
        if self.table.get(session.id) is session:
            self.table.remove(session.id)
            logger.info(f"Session {session.id} closed ({self.table.count()} active)")

    # ------------------------------------------------------------------
    # Submit path
    # ------------------------------------------------------------------

    def _require(self, session_id: str) -> Session:
        session = self.table.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.touch()
        return session

    async def submit(self, session_id: str, message: Any) -> ResponseEnvelope | None:
        """Route ``message`` for ``session_id`` and push the response onto its channel.

        Raises:
            SessionNotFoundError: no session is registered under ``session_id``.
        """
        session = self._require(session_id)
        response = await self.router.route(message, session_id)
        if response is not None:
            # A channel closed while the handler ran drops the response silently
            session.channel.send_message(response)
        return response

    def reject_unparsable(self, session_id: str, detail: str) -> ResponseEnvelope:
        """Report a body that could not be parsed as an id-less internal error."""
        session = self._require(session_id)
        response = ResponseEnvelope.failure(None, JsonRpcError.INTERNAL_ERROR, MSG_INTERNAL_ERROR, detail)
        session.channel.send_message(response)
        return response

    # ------------------------------------------------------------------
    # Status and shutdown
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        return {
            "status": "running",
            "activeSessions": self.table.count(),
            "version": self.server_info.get("version"),
            "tools": self.registry.tool_names(),
            "resources": self.registry.resource_names(),
        }

    def shutdown(self) -> int:
        """Close every open channel; returns how many sessions were swept."""
        sessions = self.table.snapshot()
        for session in sessions:
            session.channel.close()
            self.table.remove(session.id)
        if sessions:
            logger.info(f"Closed {len(sessions)} session(s) on shutdown")
        return len(sessions)

    async def run_idle_sweeper(self, max_idle: float, interval: float | None = None) -> None:
        """Periodically expire idle sessions until cancelled."""
        interval = interval or min(max_idle, 60.0)
        while True:
            await asyncio.sleep(interval)
            self.table.cleanup_idle(max_idle)

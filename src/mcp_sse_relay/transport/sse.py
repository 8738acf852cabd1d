#!/usr/bin/env python3
# src/mcp_sse_relay/transport/sse.py
"""
Push channel - one outbound Server-Sent Events stream per session.

Events written before ``open()`` are buffered and flushed in order once the
channel opens. Frames are queued for the streaming response, which drains
them through ``stream()``; a ``None`` sentinel ends the stream. Closing is
terminal: later writes are silently dropped.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import orjson

from ..constants import (
    CONTENT_TYPE_SSE,
    DEFAULT_KEEPALIVE_INTERVAL,
    EVENT_CONNECTED,
    EVENT_DISCONNECTED,
    EVENT_MCP_MESSAGE,
    EVENT_SERVER_STATUS,
    KEEPALIVE_FRAME,
)

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Cache-Control",
    "X-Accel-Buffering": "no",
}

LISTENER_KINDS = ("opened", "closed", "error")

Listener = Callable[..., Any]


class ChannelState(str, Enum):
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"


def format_event(name: str, payload: Any) -> str:
    """Frame one named event; raises ``TypeError`` if the payload is not serialisable."""
    return f"event: {name}\ndata: {orjson.dumps(payload).decode()}\n\n"


def iso_timestamp() -> str:
    """UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PushChannel:
    """Server-to-client event stream for a single session."""

    def __init__(self, session_id: str | None = None, keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL):
        self.session_id = session_id
        self.keepalive_interval = keepalive_interval
        self._state = ChannelState.PENDING
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._buffer: list[tuple[str, Any]] = []
        self._listeners: dict[str, list[Listener]] = {kind: [] for kind in LISTENER_KINDS}
        self._keepalive_task: asyncio.Task[None] | None = None
        # Time the last frame was handed to the transport
        self.last_delivery: float | None = None

    def __repr__(self) -> str:
        return f"PushChannel(session_id={self.session_id!r}, state={self._state.value})"

    # ------------------------------------------------------------------
    # State and listeners
    # ------------------------------------------------------------------

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ChannelState.OPEN

    @property
    def is_closed(self) -> bool:
        return self._state is ChannelState.CLOSED

    @property
    def buffered(self) -> int:
        """Number of events waiting for ``open()``."""
        return len(self._buffer)

    @property
    def headers(self) -> dict[str, str]:
        return dict(SSE_HEADERS)

    @property
    def media_type(self) -> str:
        return CONTENT_TYPE_SSE

    def add_listener(self, kind: str, callback: Listener) -> None:
        """Register ``callback(channel)`` for opened/closed or ``callback(channel, error)`` for error."""
        if kind not in self._listeners:
            raise ValueError(f"Unknown channel event '{kind}', expected one of {', '.join(LISTENER_KINDS)}")
        self._listeners[kind].append(callback)

    def remove_listener(self, kind: str, callback: Listener) -> None:
        if callback in self._listeners.get(kind, []):
            self._listeners[kind].remove(callback)

    def _notify(self, kind: str, *args: Any) -> None:
        for callback in list(self._listeners[kind]):
            try:
                callback(self, *args)
            except Exception:
                logger.exception(f"Channel {kind} listener failed for session {self.session_id}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Start the stream: write ``connected``, flush the buffer, start keep-alives."""
        if self._state is not ChannelState.PENDING:
            return

        self._state = ChannelState.OPEN
        if not self._write_event(EVENT_CONNECTED, {"message": "MCP Server connected"}):
            return

        buffered, self._buffer = self._buffer, []
        for name, payload in buffered:
            if not self._write_event(name, payload):
                return

        self._start_keepalive()
        logger.debug(f"Channel opened for session {self.session_id} ({len(buffered)} buffered events flushed)")
        self._notify("opened")

    def close(self) -> None:
        """End the stream. Idempotent; a closed channel never reopens."""
        if self._state is ChannelState.CLOSED:
            return

        was_open = self._state is ChannelState.OPEN
        self._state = ChannelState.CLOSED
        if was_open:
            self._queue.put_nowait(format_event(EVENT_DISCONNECTED, {"message": "MCP Server disconnected"}))
        self._queue.put_nowait(None)

        if self._keepalive_task is not None:
            self._keepalive_task.cancel()
            self._keepalive_task = None
        self._buffer.clear()

        logger.debug(f"Channel closed for session {self.session_id}")
        self._notify("closed")

    def _fail(self, error: BaseException) -> None:
        if self._state is ChannelState.CLOSED:
            return
        logger.warning(f"Channel write failed for session {self.session_id}: {error}")
        self._notify("error", error)
        self.close()

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def send_event(self, name: str, payload: Any) -> None:
        """Write a named event, or buffer it until the channel opens. Never blocks."""
        if self._state is ChannelState.CLOSED:
            return
        if self._state is ChannelState.PENDING:
            self._buffer.append((name, payload))
            return
        self._write_event(name, payload)

    def send_status(self, status: str, message: str, **extra: Any) -> None:
        """Write a ``server-status`` event."""
        payload = {"status": status, "message": message, "timestamp": iso_timestamp(), **extra}
        self.send_event(EVENT_SERVER_STATUS, payload)

    def send_message(self, envelope: Any) -> None:
        """Write a response envelope as an ``mcp-message`` event."""
        if hasattr(envelope, "to_dict"):
            envelope = envelope.to_dict()
        self.send_event(EVENT_MCP_MESSAGE, envelope)

    def _write_event(self, name: str, payload: Any) -> bool:
        try:
            frame = format_event(name, payload)
        except TypeError as e:
            self._fail(e)
            return False
        self._queue.put_nowait(frame)
        return True

    # ------------------------------------------------------------------
    # Keep-alive
    # ------------------------------------------------------------------

    def _start_keepalive(self) -> None:
        if self._keepalive_task is not None or not self.keepalive_interval:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Started from stream() once an event loop is running
            return
        self._keepalive_task = loop.create_task(self._keepalive_loop())

    async def _keepalive_loop(self) -> None:
        while self._state is ChannelState.OPEN:
            await asyncio.sleep(self.keepalive_interval)
            if self._state is not ChannelState.OPEN:
                break
            self._queue.put_nowait(KEEPALIVE_FRAME)

    # ------------------------------------------------------------------
    # Draining
    # ------------------------------------------------------------------

    async def stream(self) -> AsyncIterator[str]:
        """Yield frames until the channel closes; ending the iteration closes the channel."""
        if self._state is ChannelState.OPEN:
            self._start_keepalive()
        try:
            while True:
                frame = await self._queue.get()
                if frame is None:
                    break
                self.last_delivery = time.time()
                yield frame
        except Exception as e:
            self._fail(e)
        finally:
            self.close()

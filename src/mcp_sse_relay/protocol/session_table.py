#!/usr/bin/env python3
# src/mcp_sse_relay/protocol/session_table.py
"""
Session table - the process-wide map of session id to live session.

Mutations never await, so the table needs no lock under asyncio.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..transport import PushChannel

if TYPE_CHECKING:
    from ..registry import HandlerRegistry

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One client connection: its push channel plus the registry serving it."""

    id: str
    channel: PushChannel
    registry: "HandlerRegistry"
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    def touch(self) -> None:
        self.last_activity = time.time()

    def idle_for(self, now: float | None = None) -> float:
        """Seconds since the last submission or the last frame delivered on the channel."""
        last_seen = max(self.last_activity, self.channel.last_delivery or 0.0)
        return (now if now is not None else time.time()) - last_seen


class SessionTable:
    """Insert, look up and remove sessions by id."""

    def __init__(self) -> None:
        self.sessions: dict[str, Session] = {}

    def put(self, session_id: str, session: Session) -> None:
        """Store a session, replacing any entry with the same id."""
        if session_id in self.sessions:
            logger.debug(f"Replacing session {session_id}")
        self.sessions[session_id] = session

    def get(self, session_id: str) -> Session | None:
        return self.sessions.get(session_id)

    def remove(self, session_id: str) -> Session | None:
        """Remove a session; a no-op returning None if it is absent."""
        session = self.sessions.pop(session_id, None)
        if session is not None:
            logger.debug(f"Removed session {session_id}")
        return session

    def count(self) -> int:
        return len(self.sessions)

    def snapshot(self) -> list[Session]:
        """Stable copy of the current sessions, safe to iterate while entries are removed."""
        return list(self.sessions.values())

    def __contains__(self, session_id: object) -> bool:
        return session_id in self.sessions

    def __len__(self) -> int:
        return len(self.sessions)

    def cleanup_idle(self, max_idle: float, now: float | None = None) -> list[str]:
        """Close and remove sessions idle for longer than ``max_idle`` seconds."""
        now = now if now is not None else time.time()
        expired = [s for s in self.snapshot() if s.idle_for(now) > max_idle]

        for session in expired:
            self.remove(session.id)
            session.channel.close()

        if expired:
            logger.info(f"Expired {len(expired)} idle session(s)")
        return [s.id for s in expired]

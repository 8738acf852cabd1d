#!/usr/bin/env python3
"""
endpoints/sse.py - Push channel endpoint

``GET /sse?sessionId=<id>`` opens a session and streams its events until the
client disconnects or the server shuts down.
"""

import logging

from starlette.requests import Request
from starlette.responses import StreamingResponse

from ..protocol import SessionController
from .constants import QUERY_SESSION_ID

logger = logging.getLogger(__name__)


async def sse_endpoint(request: Request) -> StreamingResponse:
    """Open a session and return its event stream."""
    controller: SessionController = request.app.state.controller
    requested_id = request.query_params.get(QUERY_SESSION_ID) or None

    session = await controller.open_session(requested_id)
    logger.debug(f"New SSE connection: {session.id}")

    channel = session.channel
    return StreamingResponse(channel.stream(), media_type=channel.media_type, headers=channel.headers)

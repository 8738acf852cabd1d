#!/usr/bin/env python3
"""
endpoints/mcp.py - Envelope submission endpoint

``POST /mcp/{session_id}`` hands one request envelope to the session's router.
The response travels on the push channel; this endpoint only acknowledges.
"""

import logging

import orjson
from starlette.requests import Request
from starlette.responses import Response

from ..errors import SessionNotFoundError
from ..protocol import SessionController
from .constants import ERROR_INVALID_JSON, ERROR_SESSION_NOT_FOUND, STATUS_MESSAGE_PROCESSED, HttpStatus
from .utils import error_response, json_response

logger = logging.getLogger(__name__)


async def mcp_message_endpoint(request: Request) -> Response:
    """Accept one envelope for an existing session."""
    controller: SessionController = request.app.state.controller
    session_id = request.path_params["session_id"]

    try:
        body = await request.body()
        try:
            message = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            logger.debug(f"Unparsable body for session {session_id}: {e}")
            controller.reject_unparsable(session_id, f"{ERROR_INVALID_JSON}: {e}")
        else:
            await controller.submit(session_id, message)

    except SessionNotFoundError:
        return error_response(ERROR_SESSION_NOT_FOUND, HttpStatus.NOT_FOUND)
    except Exception as e:
        logger.error(f"Failed to handle message for session {session_id}: {e}", exc_info=True)
        return error_response(str(e), HttpStatus.INTERNAL_SERVER_ERROR)

    return json_response({"status": STATUS_MESSAGE_PROCESSED})

#!/usr/bin/env python3
"""
Endpoint utilities - orjson-backed JSON and error responses.
"""

from typing import Any

import orjson
from starlette.responses import Response

from .constants import CONTENT_TYPE_JSON, HEADERS_CORS_NOCACHE, HttpStatus


def json_response(data: Any, status_code: int = HttpStatus.OK, headers: dict[str, str] | None = None) -> Response:
    """JSON response serialized with orjson."""
    return Response(
        orjson.dumps(data),
        status_code=int(status_code),
        media_type=CONTENT_TYPE_JSON,
        headers=headers if headers is not None else HEADERS_CORS_NOCACHE,
    )


def error_response(message: str, status_code: int = HttpStatus.INTERNAL_SERVER_ERROR) -> Response:
    """``{"error": message}`` with the given status."""
    return json_response({"error": message}, status_code)

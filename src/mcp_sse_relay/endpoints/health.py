#!/usr/bin/env python3
"""
endpoints/health.py - Liveness endpoint for load balancers and monitors
"""

import time

from starlette.requests import Request
from starlette.responses import Response

from .constants import HEADERS_HEALTH
from .utils import json_response


async def health_endpoint(request: Request) -> Response:
    """Minimal health information: status, uptime and current time."""
    current_time = time.time()
    uptime = current_time - request.app.state.started_at

    health_data = {
        "status": "healthy",
        "uptime": round(uptime, 2),
        "timestamp": current_time,
    }
    return json_response(health_data, headers=HEADERS_HEALTH)

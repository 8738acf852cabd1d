#!/usr/bin/env python3
"""
endpoints/info.py - Capability listings and relay status
"""

from starlette.requests import Request
from starlette.responses import Response

from ..protocol import SessionController
from .utils import json_response


async def tools_endpoint(request: Request) -> Response:
    """``[{name, title, description}]`` for every registered tool."""
    controller: SessionController = request.app.state.controller
    return json_response(controller.registry.list_tools())


async def resources_endpoint(request: Request) -> Response:
    """``[{name, title, description, template}]`` for every registered resource."""
    controller: SessionController = request.app.state.controller
    return json_response(controller.registry.list_resources())


async def status_endpoint(request: Request) -> Response:
    controller: SessionController = request.app.state.controller
    return json_response(controller.status())

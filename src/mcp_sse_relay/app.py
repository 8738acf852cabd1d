#!/usr/bin/env python3
"""
app.py - Relay application factory

Creates the Starlette application: CORS middleware, the relay routes and a
lifespan handler that sweeps every open session on shutdown.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route

from .config import RelayConfig
from .endpoints import (
    health_endpoint,
    mcp_message_endpoint,
    resources_endpoint,
    sse_endpoint,
    status_endpoint,
    tools_endpoint,
)
from .endpoints.constants import PATH_HEALTH, PATH_MCP_MESSAGE, PATH_RESOURCES, PATH_SSE, PATH_STATUS, PATH_TOOLS
from .protocol import SessionController, SessionTable
from .registry import HandlerRegistry
from .tools import create_default_registry

logger = logging.getLogger(__name__)


def create_controller(config: RelayConfig, registry: HandlerRegistry | None = None) -> SessionController:
    """Build a controller over a fresh session table."""
    return SessionController(
        SessionTable(),
        registry if registry is not None else create_default_registry(config),
        server_info=config.server_info,
        keepalive_interval=config.keepalive_interval,
    )


def create_app(
    config: RelayConfig | None = None,
    registry: HandlerRegistry | None = None,
    controller: SessionController | None = None,
    debug: bool = False,
) -> Starlette:
    """
    Create and configure the relay application.

    Args:
        config: Relay settings; read from the environment when omitted.
        registry: Tools and resources to serve; the built-ins when omitted.
        controller: Pre-built controller, mainly for tests.
        debug: Starlette debug mode.
    """
    config = config or RelayConfig.from_env()
    controller = controller or create_controller(config, registry)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        sweeper = None
        if config.session_ttl:
            sweeper = asyncio.create_task(controller.run_idle_sweeper(config.session_ttl))
            logger.info(f"Idle sessions expire after {config.session_ttl:g}s")

        logger.info(
            f"{config.server_name} {config.server_version} ready: "
            f"{len(controller.registry.tools)} tools, {len(controller.registry.resources)} resources"
        )
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper
            closed = controller.shutdown()
            logger.info(f"Shutting down, closed {closed} session(s)")

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
            max_age=3600,
        ),
    ]

    routes = [
        # Session transport
        Route(PATH_SSE, sse_endpoint, methods=["GET"]),
        Route(PATH_MCP_MESSAGE, mcp_message_endpoint, methods=["POST"]),
        # Discovery and monitoring
        Route(PATH_TOOLS, tools_endpoint, methods=["GET"]),
        Route(PATH_RESOURCES, resources_endpoint, methods=["GET"]),
        Route(PATH_STATUS, status_endpoint, methods=["GET"]),
        Route(PATH_HEALTH, health_endpoint, methods=["GET"]),
    ]

    app = Starlette(debug=debug, routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.config = config
    app.state.controller = controller
    app.state.started_at = time.time()
    return app

#!/usr/bin/env python3
"""
cli.py - Command-line entry point

Parses arguments, configures logging and runs the relay under uvicorn.
"""

import argparse
import logging
import os
import sys

import orjson
import uvicorn

from .app import create_app
from .config import RelayConfig
from .constants import ENV_HOST, ENV_MCP_LOG_LEVEL, ENV_PORT, PACKAGE_LOGGER

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", stderr: bool = True) -> None:
    """Set up logging configuration."""
    stream = sys.stderr if stderr else sys.stdout
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=stream,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level.upper())


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser"""
    parser = argparse.ArgumentParser(
        prog="mcp-sse-relay",
        description="Session-oriented JSON-RPC relay over HTTP POST and Server-Sent Events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mcp-sse-relay                          # Run with defaults (port 3000)
  mcp-sse-relay --port 8080              # Custom port
  mcp-sse-relay --log-level debug        # Verbose logging
  mcp-sse-relay --info                   # Show resolved configuration
        """,
    )
    parser.add_argument("--host", default=None, help="Host to bind to (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: $PORT or 3000)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Logging level (default: $MCP_LOG_LEVEL or detected from the environment)",
    )
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload on file changes")
    parser.add_argument("--info", action="store_true", help="Print the resolved configuration and exit")
    return parser


def print_info(config: RelayConfig) -> None:
    """Print the resolved configuration."""
    print(orjson.dumps(config.summary(), option=orjson.OPT_INDENT_2).decode())


def build_config(args: argparse.Namespace) -> RelayConfig:
    return RelayConfig.from_env(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=True if args.reload else None,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point"""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    config = build_config(args)
    if args.info:
        print_info(config)
        return 0

    setup_logging(config.log_level)
    logger.info(f"Starting {config.server_name} on http://{config.host}:{config.port}")
    logger.info(f"SSE endpoint: http://{config.host}:{config.port}/sse")

    if config.reload:
        # The reloader re-imports the app, so hand the resolved settings over via the environment
        os.environ[ENV_HOST] = config.host
        os.environ[ENV_PORT] = str(config.port)
        os.environ[ENV_MCP_LOG_LEVEL] = config.log_level
        uvicorn.run("mcp_sse_relay.app:create_app", factory=True, **config.uvicorn_kwargs())
    else:
        uvicorn.run(create_app(config), **config.uvicorn_kwargs())
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
# src/mcp_sse_relay/config/smart_config.py
"""
Relay configuration built from environment variables with detected defaults.
"""

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..constants import (
    DEFAULT_HOST,
    DEFAULT_KEEPALIVE_INTERVAL,
    DEFAULT_PORT,
    ENV_GOOGLE_API_KEY,
    ENV_HOST,
    ENV_MCP_KEEPALIVE_INTERVAL,
    ENV_MCP_LOG_LEVEL,
    ENV_MCP_SERVER_NAME,
    ENV_MCP_SERVER_VERSION,
    ENV_MCP_SESSION_TTL,
    ENV_PORT,
    ENV_STUDENTS_CSV,
    SERVER_NAME,
    SERVER_VERSION,
)
from .constants import LOG_LEVELS, VALID_LOG_LEVELS
from .environment_detector import EnvironmentDetector


class RelayConfig(BaseModel):
    """Runtime settings for the relay server."""

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    server_name: str = SERVER_NAME
    server_version: str = SERVER_VERSION
    environment: str = "development"
    log_level: str = "INFO"
    reload: bool = False
    keepalive_interval: float = Field(default=DEFAULT_KEEPALIVE_INTERVAL, gt=0)
    # None disables idle expiry; sessions then end only when their channel closes.
    # Idle means no submissions and no frames drained from the stream.
    session_ttl: float | None = Field(default=None, gt=0)
    students_csv: str | None = None
    google_api_key: str | None = Field(default=None, repr=False)

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "RelayConfig":
        """Build a config from environment variables; keyword overrides win over the environment."""
        env = os.environ if environ is None else environ
        environment = EnvironmentDetector(env).detect()

        values: dict[str, Any] = {
            "environment": environment,
            "log_level": LOG_LEVELS.get(environment, "INFO"),
        }
        mapping = {
            ENV_HOST: "host",
            ENV_PORT: "port",
            ENV_MCP_SERVER_NAME: "server_name",
            ENV_MCP_SERVER_VERSION: "server_version",
            ENV_MCP_LOG_LEVEL: "log_level",
            ENV_MCP_KEEPALIVE_INTERVAL: "keepalive_interval",
            ENV_MCP_SESSION_TTL: "session_ttl",
            ENV_STUDENTS_CSV: "students_csv",
            ENV_GOOGLE_API_KEY: "google_api_key",
        }
        for env_name, field_name in mapping.items():
            value = env.get(env_name)
            if value:
                values[field_name] = value

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def server_info(self) -> dict[str, str]:
        return {"name": self.server_name, "version": self.server_version}

    def uvicorn_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``uvicorn.run``."""
        return {
            "host": self.host,
            "port": self.port,
            "log_level": self.log_level.lower(),
            "reload": self.reload,
            "access_log": self.log_level == "DEBUG",
        }

    def summary(self) -> dict[str, Any]:
        """Printable view with secrets masked."""
        info = self.model_dump()
        info["google_api_key"] = "set" if self.google_api_key else "unset"
        return info

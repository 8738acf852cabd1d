#!/usr/bin/env python3
# src/mcp_sse_relay/config/environment_detector.py
"""
Environment detection from explicit variables and CI indicators.
"""

import logging
import os
from collections.abc import Mapping

from .constants import CI_INDICATORS, ENV_ENV, ENV_ENVIRONMENT, ENV_NODE_ENV, ENVIRONMENT_ALIASES

logger = logging.getLogger(__name__)


class EnvironmentDetector:
    """Work out which deployment environment the relay is running in."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def get_env_var(self, name: str, default: str = "") -> str:
        return self.environ.get(name, default)

    def detect(self) -> str:
        """Return one of production, staging, testing or development."""
        explicit = self._get_explicit_environment()
        if explicit:
            logger.debug(f"Explicit environment detected: {explicit}")
            return explicit

        if self._is_ci_environment():
            logger.debug("CI/CD environment detected")
            return "testing"

        return "development"

    def _get_explicit_environment(self) -> str:
        value = self.get_env_var(
            ENV_NODE_ENV, self.get_env_var(ENV_ENV, self.get_env_var(ENV_ENVIRONMENT, ""))
        ).lower()
        return ENVIRONMENT_ALIASES.get(value, "")

    def _is_ci_environment(self) -> bool:
        return any(self.get_env_var(var) for var in CI_INDICATORS)

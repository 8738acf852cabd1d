#!/usr/bin/env python3
"""
Configuration detection constants: CI indicators and environment variable names.
"""

# ---------------------------------------------------------------------------
# CI/CD environment indicator variables
# ---------------------------------------------------------------------------
CI_INDICATORS = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "JENKINS_HOME",
    "TRAVIS",
    "CIRCLECI",
    "BUILDKITE",
    "DRONE",
    "BAMBOO_BUILD_KEY",
)


# ---------------------------------------------------------------------------
# Environment type detection variables
# ---------------------------------------------------------------------------
ENV_NODE_ENV = "NODE_ENV"
ENV_ENV = "ENV"
ENV_ENVIRONMENT = "ENVIRONMENT"

ENVIRONMENT_ALIASES = {
    "production": "production",
    "prod": "production",
    "staging": "staging",
    "stage": "staging",
    "test": "testing",
    "testing": "testing",
    "development": "development",
    "dev": "development",
}


# ---------------------------------------------------------------------------
# Per-environment defaults
# ---------------------------------------------------------------------------
LOG_LEVELS = {
    "production": "WARNING",
    "staging": "INFO",
    "testing": "WARNING",
    "development": "INFO",
}

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

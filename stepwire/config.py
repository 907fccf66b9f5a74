"""Configuration management with environment variable loading."""

import os
from typing import Optional
from pathlib import Path

from stepwire.exceptions import ConfigurationError


def load_env_file(env_file: Optional[Path] = None) -> None:
    """Load environment variables from .env file if it exists."""
    if env_file is None:
        env_file = Path.cwd() / ".env"
    if env_file.exists():
        with open(env_file, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    if key not in os.environ:  # Don't override existing env vars
                        os.environ[key] = value.strip()


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(name, default)


def get_env_float(name: str, default: float) -> float:
    """Get a numeric environment variable, falling back to default when unset."""
    raw = get_env(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be numeric, got '{raw}'")


# Environment variable names
ENV_LOG_LEVEL = "STEPWIRE_LOG_LEVEL"
"""str: Root log level; per-module overrides use STEPWIRE_LOG_LEVEL_<MODULE>."""

ENV_LOG_DIR = "STEPWIRE_LOG_DIR"
"""str: Directory for rotating log files."""

ENV_ENVIRONMENT = "STEPWIRE_ENVIRONMENT"
"""str: 'production' switches logs to JSON."""

ENV_DOCKER_BINARY = "STEPWIRE_DOCKER_BIN"
"""str: Override for the docker executable."""

ENV_COMMAND_TIMEOUT = "STEPWIRE_COMMAND_TIMEOUT"
"""str: Default timeout in seconds for external commands."""

# Defaults
DEFAULT_DOCKER_BINARY = "docker"
DEFAULT_COMMAND_TIMEOUT = 300.0
DEFAULT_HEALTH_CHECK_RETRIES = 5
DEFAULT_RETRY_DELAY_SECONDS = 2.0
TASK_WAIT_POLL_INTERVAL = 0.01
DEFAULT_MANAGER_WORKERS = 4


def docker_binary() -> str:
    return get_env(ENV_DOCKER_BINARY, DEFAULT_DOCKER_BINARY)


def command_timeout() -> float:
    return get_env_float(ENV_COMMAND_TIMEOUT, DEFAULT_COMMAND_TIMEOUT)

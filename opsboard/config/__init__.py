"""Opsboard configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/opsboard/config.toml (user config)
4. /opt/opsboard/config.toml (production install)
5. /etc/opsboard/config.toml (system config)

Secrets are loaded from secrets.env files in the same directories.
"""

from opsboard.config.schema import (
    DatabaseConfig,
    ImporterConfig,
    LoggingConfig,
    OpsboardConfig,
    SecretsConfig,
    ServerConfig,
)
from opsboard.config.settings import Settings, get_settings, reset_settings, settings

__all__ = [
    "DatabaseConfig",
    "ImporterConfig",
    "LoggingConfig",
    "OpsboardConfig",
    "SecretsConfig",
    "ServerConfig",
    "Settings",
    "get_settings",
    "reset_settings",
    "settings",
]

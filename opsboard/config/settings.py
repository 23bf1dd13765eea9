"""Global settings instance for Opsboard.

This module provides a unified settings object that combines:
- Configuration from config.toml
- Secrets from secrets.env
- Environment variable overrides
"""

import logging

from opsboard.config.loader import load_config, load_secrets
from opsboard.config.schema import ImporterConfig, OpsboardConfig, SecretsConfig

logger = logging.getLogger(__name__)


class Settings:
    """Unified settings object combining config and secrets.

    Exposes a flat property interface over the structured
    OpsboardConfig and SecretsConfig.
    """

    def __init__(
        self,
        config: OpsboardConfig | None = None,
        secrets: SecretsConfig | None = None,
    ):
        """Initialize settings.

        Args:
            config: Optional OpsboardConfig instance. If not provided, loads from file.
            secrets: Optional SecretsConfig instance. If not provided, loads from file.
        """
        self._config = config or load_config()
        self._secrets = secrets or load_secrets()

    @property
    def config(self) -> OpsboardConfig:
        """Get the full configuration object."""
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        """Get the secrets configuration object."""
        return self._secrets

    # Application
    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def debug(self) -> bool:
        return self._config.server.debug

    @property
    def log_level(self) -> str:
        return self._config.logging.level

    # Server
    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        return self._config.server.port

    @property
    def cors_origins(self) -> list[str]:
        return self._config.server.cors_origins

    # Database
    @property
    def mongodb_url(self) -> str:
        return self._secrets.mongodb_url or self._config.database.mongodb_url

    @property
    def mongodb_database(self) -> str:
        return self._config.database.mongodb_database

    @property
    def min_pool_size(self) -> int:
        return self._config.database.min_pool_size

    @property
    def max_pool_size(self) -> int:
        return self._config.database.max_pool_size

    # Importer
    @property
    def importer(self) -> ImporterConfig:
        return self._config.importer

    @property
    def import_batch_size(self) -> int:
        return self._config.importer.batch_size

    @property
    def duplicate_check_concurrency(self) -> int:
        return self._config.importer.duplicate_check_concurrency

    @property
    def import_max_rows(self) -> int:
        return self._config.importer.max_rows

    @property
    def max_upload_size_bytes(self) -> int:
        return self._config.importer.max_upload_bytes

    @property
    def default_created_by(self) -> str:
        return self._config.importer.default_created_by


# Global settings instance - lazily initialized
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    The settings are loaded once and cached for subsequent calls.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance.

    This is primarily useful for testing to reload configuration.
    """
    global _settings
    _settings = None


class _SettingsProxy:
    """Proxy object that lazily loads settings on first access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return repr(get_settings())


settings = _SettingsProxy()

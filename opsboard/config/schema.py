"""Pydantic models for Opsboard configuration.

These models define the structure of config.toml and secrets.env files.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    # CORS configuration - empty list means same-origin only
    cors_origins: list[str] = []


class DatabaseConfig(BaseModel):
    """MongoDB database configuration."""

    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "opsboard"
    # Connection pool settings
    min_pool_size: int = 10
    max_pool_size: int = 100


class ImporterConfig(BaseModel):
    """Bulk incident import configuration."""

    batch_size: int = Field(10, ge=1)
    duplicate_check_concurrency: int = Field(8, ge=1)
    max_rows: int = Field(5000, ge=1)
    max_upload_mb: int = Field(10, ge=1)
    default_created_by: str = "import"

    @property
    def max_upload_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_mb * 1024 * 1024


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


class OpsboardConfig(BaseModel):
    """Main Opsboard configuration loaded from config.toml."""

    app_name: str = "Opsboard"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    importer: ImporterConfig = Field(default_factory=ImporterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class SecretsConfig(BaseModel):
    """Secrets loaded from secrets.env file.

    These are sensitive values that should not be stored in config.toml.
    """

    # Connection URL with credentials; overrides database.mongodb_url when set
    mongodb_url: str | None = None

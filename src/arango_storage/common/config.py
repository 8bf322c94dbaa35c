"""Centralized configuration management for the ArangoDB storage connector.

This module provides type-safe configuration using Pydantic Settings with
environment variable override support. Configuration is hierarchical:
- StorageConfig: ArangoDB connection and collection routing settings
- ObservabilityConfig: Logging and metrics settings
- Config: Main configuration aggregating all sub-configs

Environment variables follow the pattern: ARANGO_STORAGE_{COMPONENT}_{PARAMETER}

Examples:
    ARANGO_STORAGE_DB_DATABASE_URL=http://arangodb:8529
    ARANGO_STORAGE_DB_SPLIT_CHAR=/
    ARANGO_STORAGE_OBSERVABILITY_LOG_LEVEL=DEBUG

Usage:
    from arango_storage.common.config import config

    print(config.storage.database_url)
    print(config.storage.split_char)

    # Host platforms hand over their camelCase option maps unchanged
    storage_config = StorageConfig.from_options({"splitChar": "/"})
"""

from collections.abc import Mapping
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Option names used by the host platform's storage connector settings
OPTION_NAMES = {
    "databaseURL": "database_url",
    "databaseName": "database_name",
    "username": "username",
    "password": "password",
    "defaultCollection": "default_collection",
    "splitChar": "split_char",
    "maxWorkers": "max_workers",
}


class StorageConfig(BaseSettings):
    """ArangoDB connection and routing configuration.

    Controls where records are stored and how record keys are split into
    collection names and document ids.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARANGO_STORAGE_DB_", case_sensitive=False, extra="ignore",
    )

    database_url: str = Field(
        default="http://127.0.0.1:8529", description="ArangoDB endpoint URL",
    )

    database_name: str = Field(
        default="deepstream", description="Database holding all record collections",
    )

    username: str = Field(default="deepstream", description="Basic auth username")

    password: str = Field(default="deepstream", description="Basic auth password")

    default_collection: str = Field(
        default="deepstream_docs",
        description="Collection for keys without a split character",
    )

    split_char: Optional[str] = Field(
        default=None,
        description="Character separating the collection name from the document id",
    )

    max_workers: int = Field(
        default=4, description="Worker threads running store operations", ge=1, le=64,
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure the database URL is a valid HTTP(S) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("database_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("database_name", "default_collection", "username")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Ensure names are not empty."""
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()

    @field_validator("split_char")
    @classmethod
    def validate_split_char(cls, v: Optional[str]) -> Optional[str]:
        """Empty disables splitting, anything else must be a single character."""
        if not v:
            return None
        if len(v) != 1:
            raise ValueError("split_char must be a single character")
        return v

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "StorageConfig":
        """Build a config from a host option map.

        Accepts both the platform's camelCase names (``databaseURL``,
        ``splitChar``, ...) and the snake_case field names. Options that are
        missing or ``None`` fall back to the environment and the defaults.

        Raises:
            TypeError: If options is not a mapping
        """
        if options is None:
            return cls()
        if not isinstance(options, Mapping):
            raise TypeError(f"options must be a mapping, got {type(options).__name__}")

        values = {}
        for name, value in options.items():
            field_name = OPTION_NAMES.get(name, name)
            if field_name in cls.model_fields and value is not None:
                values[field_name] = value
        return cls(**values)


class ObservabilityConfig(BaseSettings):
    """Logging and metrics configuration.

    Controls structured logging level and Prometheus metrics collection.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARANGO_STORAGE_OBSERVABILITY_", case_sensitive=False, extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    json_logs: bool = Field(default=False, description="Render logs as JSON lines")

    enable_metrics: bool = Field(default=True, description="Enable Prometheus metrics collection")


class Config(BaseSettings):
    """Main connector configuration.

    Aggregates all sub-configurations into a single config object.
    Automatically loads from environment variables with ARANGO_STORAGE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARANGO_STORAGE_",
        case_sensitive=False,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local", description="Deployment environment",
    )

    # Sub-configurations
    storage: StorageConfig = Field(default_factory=StorageConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


# Global singleton instance
# Import this in other modules: from arango_storage.common.config import config
config = Config()

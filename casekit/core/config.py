"""Centralized configuration management with environment-aware defaults.

This module implements the configuration system using Pydantic Settings,
providing type-safe configuration with validation and environment variable
support.

Features:
- **Type safety**: All configuration values are validated and typed
- **Environment variables**: Supports .env files and environment overrides
- **Nested configuration**: Uses __ delimiter for nested sections
  (for example ``DATABASE_CONFIG__DATABASE_URL``)
- **Auto-detection**: Picks a log formatter for the deployment environment
- **Caching**: Configuration is cached for performance

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in project root
3. Default values in model definitions
"""

import os
from functools import lru_cache
from typing import Literal, Self

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from casekit.infrastructure.constants import (
    DEFAULT_CLIENT,
    DEFAULT_MIGRATIONS_DIRECTORY,
    DEFAULT_POOL_MAX,
    DEFAULT_POOL_MIN,
    DEFAULT_VERSION_TABLE,
    MIGRATION_RETRY_DELAY_SECONDS,
    POOL_SAMPLE_INTERVAL_MS,
    SLOW_QUERY_THRESHOLD_MS,
)


class LogConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    slow_query_threshold_ms: int = Field(
        default=SLOW_QUERY_THRESHOLD_MS,
        gt=0,
        description="Queries at or above this duration are logged as slow",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "api_key",
            "authorization",
        ],
        description="Field names to redact",
    )


class DatabaseConfig(BaseModel):
    """Database setup configuration."""

    database_url: str | None = Field(
        default=None,
        description="Database connection URL. Required to run database setup.",
    )
    client: str = Field(
        default=DEFAULT_CLIENT,
        description="SQLAlchemy drivername used for bare postgres URLs",
    )
    pool_min: int = Field(
        default=DEFAULT_POOL_MIN,
        ge=0,
        description="Connections kept open in the pool",
    )
    pool_max: int = Field(
        default=DEFAULT_POOL_MAX,
        ge=1,
        description="Maximum number of connections in the pool",
    )
    migrations_directory: str = Field(
        default=DEFAULT_MIGRATIONS_DIRECTORY,
        description="Alembic script location",
    )
    version_table: str = Field(
        default=DEFAULT_VERSION_TABLE,
        description="Table Alembic records the applied revision in",
    )
    migrate_up: bool = Field(
        default=True,
        description="Migrate to the latest revision during setup",
    )
    retry_delay_seconds: float = Field(
        default=MIGRATION_RETRY_DELAY_SECONDS,
        gt=0,
        description="Delay between migration attempts while the db is unreachable",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def validate_pool_bounds(self) -> Self:
        """Ensure the pool can hold at least its minimum size."""
        if self.pool_max < self.pool_min:
            msg = "pool_max must be greater than or equal to pool_min"
            raise ValueError(msg)
        return self


class MetricsConfig(BaseModel):
    """OpenTelemetry metrics configuration."""

    enable_metrics: bool = Field(
        default=True,
        description="Enable pool and query metrics",
    )
    exporter_type: Literal["console", "otlp", "none"] = Field(
        default="console",
        description="Metric exporter type. Defaults to console for development.",
    )
    exporter_endpoint: str | None = Field(
        default=None,
        description="OTLP exporter endpoint",
    )
    export_interval_ms: int = Field(
        default=POOL_SAMPLE_INTERVAL_MS,
        gt=0,
        description="Interval between metric collections (pool sampling)",
    )

    @field_validator("exporter_endpoint", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


class Settings(BaseSettings):
    """Main settings class."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = Field(default="casekit", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )
    database_config: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    metrics_config: MetricsConfig = Field(
        default_factory=MetricsConfig, description="Metrics configuration"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Managed runtimes ingest structured logs
        if os.getenv("K_SERVICE") or os.getenv("AWS_EXECUTION_ENV"):
            return "json"
        if self.environment == "development":
            return "console"
        return "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Configuration management for SQL Objects."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sql_objects.domain.value_objects import DEFAULT_SEARCH_LIMIT


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    path: str = Field(default=":memory:", description="SQLite database file (or :memory:)")
    timeout_seconds: float = Field(
        default=5.0, gt=0, description="Seconds to wait for a locked database"
    )


class QueryConfig(BaseModel):
    """Statement generation configuration."""

    default_search_limit: int = Field(
        default=DEFAULT_SEARCH_LIMIT,
        ge=1,
        description="LIMIT applied by search when the caller gives none",
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="sql_objects", description="Service name for tracing")
    metrics_port: int | None = Field(
        default=None, ge=1, le=65535, description="Prometheus metrics port (disabled if unset)"
    )


class Config(BaseSettings):
    """Main configuration for SQL Objects."""

    model_config = SettingsConfigDict(
        env_prefix="SQL_OBJECTS_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()

"""Configuration management for Cloud Resource Inspector.

This module handles loading and validating configuration from environment
variables with sensible defaults.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.enums import DuplicatePolicy


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local use. They can be
    overridden via environment variables or a .env file.
    """

    # Server Configuration
    host: str = Field(
        default="127.0.0.1",
        description="Host to bind the HTTP API to",
        validation_alias=AliasChoices("INSPECTOR_HOST", "HOST"),
    )
    port: int = Field(
        default=8080,
        description="Port to run the HTTP API on",
        validation_alias=AliasChoices("INSPECTOR_PORT", "PORT"),
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL",
    )
    environment: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV"),
    )

    # Resource model
    duplicate_policy: DuplicatePolicy = Field(
        default=DuplicatePolicy.REPLACE,
        description="How a collection handles a second resource with an existing id",
        validation_alias="DUPLICATE_POLICY",
    )
    default_currency: str = Field(
        default="USD",
        description="Currency assumed when a cost estimate does not carry one",
        validation_alias="DEFAULT_CURRENCY",
    )

    # Snapshots and exports
    include_raw_data: bool = Field(
        default=False,
        description="Keep raw source payloads when writing snapshots",
        validation_alias="INCLUDE_RAW_DATA",
    )
    include_unchanged: bool = Field(
        default=False,
        description="Include unchanged resources in serialized drift reports",
        validation_alias="DRIFT_INCLUDE_UNCHANGED",
    )
    max_snapshot_bytes: int = Field(
        default=32 * 1024 * 1024,
        description="Largest snapshot accepted from disk or over HTTP",
        validation_alias="MAX_SNAPSHOT_BYTES",
    )

    # AWS / CloudWatch Configuration
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region used by the CloudWatch log handler",
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION"),
    )
    cloudwatch_enabled: bool = Field(
        default=False,
        description="Enable CloudWatch logging",
        validation_alias="CLOUDWATCH_ENABLED",
    )
    cloudwatch_log_group: str = Field(
        default="/cloud-inspector/app",
        description="CloudWatch log group name",
        validation_alias="CLOUDWATCH_LOG_GROUP",
    )
    cloudwatch_log_stream: Optional[str] = Field(
        default=None,
        description="CloudWatch log stream name (defaults to 'application')",
        validation_alias="CLOUDWATCH_LOG_STREAM",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None

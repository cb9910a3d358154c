"""
Centralized configuration management for the API Key Core package.

Configuration is read from environment variables on first use and cached
in a module-global instance, validated using Pydantic.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_KEY_NAME, EnvironmentVariable, LogLevel


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        validate_default=True,
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class PolicyConfig(BaseModel):
    """Defaults applied when creating keys."""

    default_key_name: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.DEFAULT_KEY_NAME.value, DEFAULT_KEY_NAME
        ),
        min_length=1,
        validate_default=True,
        description="Name given to keys created without one",
    )


class AppConfig(BaseModel):
    """Main package configuration."""

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    policy: PolicyConfig = Field(default_factory=PolicyConfig, description="Key policy defaults")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None

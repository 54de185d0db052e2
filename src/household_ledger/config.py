"""Centralized configuration management using pydantic-settings.

Configuration is loaded from environment variables with sensible defaults.
All settings can be overridden via environment variables or a .env file.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development. Override via
    environment variables (prefixed with HL_) or .env file.

    Examples:
        HL_SQLITE_PATH=/var/lib/household-ledger/ledger.db
        HL_SECRET_KEY=$(openssl rand -hex 32)
        HL_LOG_FORMAT=json
        HL_ENVIRONMENT=production
    """

    model_config = SettingsConfigDict(
        env_prefix="HL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Household Ledger"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = Field(default=False, description="Enable debug mode")

    # Database
    sqlite_path: Path = Field(
        default=Path("household_ledger.db"),
        description="SQLite database file path (':memory:' for an in-process store)",
    )

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format: 'json' for production, 'console' for development",
    )
    log_file: Path | None = Field(default=None, description="Optional log file path")

    # API Server
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_reload: bool = Field(
        default=False, description="Enable auto-reload (development only)"
    )

    # Security
    # In production this MUST be set via HL_SECRET_KEY to a random value.
    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        description="Secret key for signing session and bearer tokens.",
    )
    session_cookie_name: str = "hl_session"
    session_token_expire_days: int = Field(default=30, ge=1)
    mobile_token_expire_days: int = Field(default=7, ge=1)
    password_min_length: int = Field(default=8, ge=1)
    password_hash_iterations: int = Field(default=600_000, ge=1)

    # Tenancy
    tenant_header: str = "X-Household-ID"
    invitation_expire_days: int = Field(default=7, ge=1)

    # Ledger defaults
    default_currency: str = Field(default="IDR", min_length=1)
    transfer_category_name: str = "Transfer"

    @field_validator("secret_key", mode="after")
    @classmethod
    def validate_secret_key_in_production(cls, v: str, info) -> str:
        """Prevent use of the default secret key outside development.

        Anyone holding the default key could mint session and bearer tokens
        for arbitrary users.
        """
        environment = info.data.get("environment")

        if v == DEFAULT_SECRET_KEY and environment in (
            Environment.PRODUCTION,
            Environment.STAGING,
        ):
            raise ValueError(
                f"Default secret key cannot be used in {environment.value}. "
                "Set HL_SECRET_KEY to a secure random value (e.g., `openssl rand -hex 32`)."
            )
        return v

    @field_validator("debug", mode="before")
    @classmethod
    def set_debug_from_environment(cls, v: bool, info) -> bool:
        """Auto-enable debug in development environment."""
        if info.data.get("environment") == Environment.DEVELOPMENT:
            return True
        return v

    @property
    def database_path(self) -> str:
        return str(self.sqlite_path)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings.

    Returns:
        Configured Settings instance.
    """
    return Settings()

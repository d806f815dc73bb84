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


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    TESTING = "testing"
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

    Override via environment variables (prefixed with CT_) or .env file.

    Examples:
        CT_CORPORATION_ID=98000001
        CT_SQLITE_PATH=/var/lib/corp-tax/wallet.db
        CT_EXCLUDED_PARTY_IDS=[500016, 1000125]
        CT_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="CT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Corporation Tax"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT

    # Database
    sqlite_path: Path = Field(
        default=Path("corporation_tax.db"),
        description="SQLite database file path",
    )

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] = Field(
        default=None,
        validate_default=True,
        description="Log output format: 'json' for production, 'console' for development",
    )
    log_file: Path | None = Field(default=None, description="Optional log file path")

    # Ledger source (EVE Swagger Interface)
    esi_base_url: str = "https://esi.evetech.net"
    esi_compatibility_date: str = "2025-09-30"
    esi_timeout: float = Field(default=30.0, gt=0)
    https_proxy: str | None = Field(
        default=None, description="Optional HTTPS proxy for ledger source requests"
    )

    # Corporation being taxed
    corporation_id: int = 98762057
    wallet_division: int = Field(default=1, ge=1, le=7)
    max_journal_pages: int = Field(default=99, ge=1)
    excluded_party_ids: list[int] = Field(
        default_factory=lambda: [500016],
        description="Party ids never looked up in the actor directory",
    )

    @field_validator("log_format", mode="before")
    @classmethod
    def set_log_format_from_environment(cls, v: str, info) -> str:
        """Default to JSON logging in production and console output elsewhere."""
        if v is None:
            env = info.data.get("environment")
            if env == Environment.PRODUCTION:
                return "json"
        return v or "console"

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()

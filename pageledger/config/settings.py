"""
Configuration Management for Page Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Settings are grouped by concern and built on demand.
The default in-memory backend needs no configuration at all; the Google
Sheets group is only read once that backend is selected, so a missing
credential never breaks a local run.
"""

import warnings
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GoogleSheetsSettings(BaseSettings):
    """Where and how the ledger reaches its spreadsheet."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Service account key file (JSON) with access to the spreadsheet"
    )
    spreadsheet_id: str = Field(
        ...,
        min_length=1,
        description="Key of the spreadsheet holding the ledger"
    )

    # Worksheet titles, created on first use
    pages_sheet_name: str = Field(
        default="Pages",
        description="Worksheet with one row per page"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Append-only worksheet for audit events"
    )

    @field_validator('credentials_path')
    @classmethod
    def check_credentials_file(cls, v: str) -> str:
        # The key may be mounted after startup, so only warn
        if not Path(v).is_file():
            warnings.warn(f"Service account key not found at {v}", stacklevel=2)
        return v


class AppSettings(BaseSettings):
    """
    Runtime behaviour of the ledger.

    Read from the environment and an optional .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Deployment name, only used in logs"
    )
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )

    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Where pages are persisted"
    )
    connect_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts when connecting to the storage backend"
    )

    log_level: str = Field(
        default="INFO",
        description="Standard library log level name"
    )
    audit_enabled: bool = Field(
        default=True,
        description="Persist audit events next to the pages"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {v!r}, expected one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def uses_google_sheets(self) -> bool:
        return self.storage_backend == "google_sheets"

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level


class Settings(BaseSettings):
    """Entry point to every settings group."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings; use get_settings.cache_clear() in tests."""
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Startup check of every settings group the selected backend needs.

    Returns {group: is_valid}, plus "<group>_error" for failed groups.
    """
    settings = get_settings()
    results: dict = {}

    try:
        app = settings.app
    except ValueError as e:
        return {"app": False, "app_error": str(e)}
    results["app"] = True

    if app.uses_google_sheets:
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except ValueError as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    return results

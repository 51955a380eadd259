"""
Configuration Management for Household Hub

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    teams_sheet_name: str = Field(
        default="Teams",
        description="Name of the sheet for teams"
    )
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expenses"
    )
    groceries_sheet_name: str = Field(
        default="GroceryLists",
        description="Name of the sheet for grocery lists"
    )
    events_sheet_name: str = Field(
        default="CalendarEvents",
        description="Name of the sheet for calendar events"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Team defaults
    default_primary_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Primary currency for newly created teams"
    )
    default_supported_currencies: str = Field(
        default="USD,EUR,GBP",
        description="Comma-separated list of currencies new teams accept"
    )
    default_content_policy: str = Field(
        default="admin",
        pattern="^(admin|everyone)$",
        description="Content management policy for newly created teams"
    )

    # Settlement
    settlement_tolerance: float = Field(
        default=0.0,
        ge=0.0,
        description=(
            "Balances within this distance of zero count as settled. "
            "0.0 keeps exact comparisons."
        )
    )

    # Import limits
    max_import_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum expense import file size in MB"
    )

    @field_validator('default_primary_currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    @property
    def supported_currencies_list(self) -> list[str]:
        """Get supported currencies as a list."""
        return [
            code.strip().upper()
            for code in self.default_supported_currencies.split(",")
            if code.strip()
        ]

    @property
    def max_import_size_bytes(self) -> int:
        """Get max import size in bytes."""
        return self.max_import_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results

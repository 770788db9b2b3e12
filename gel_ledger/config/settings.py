"""
Configuration Management for GEL Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Validation limits, the local currency, the rate source endpoint and the
storage backend are all read from this module, so tests and deployments
can change them through the environment without touching code.
"""

from functools import cached_property, lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger validation limits and defaults."""

    model_config = SettingsConfigDict(
        env_prefix="GEL_LEDGER_",
        extra="ignore"
    )

    min_year: int = Field(
        default=2000,
        ge=1,
        description="Earliest calendar year accepted for a transaction date"
    )
    max_year: int = Field(
        default=2100,
        le=9999,
        description="Latest calendar year accepted for a transaction date"
    )
    max_amount: float = Field(
        default=1_000_000_000.0,
        gt=0,
        description="Upper bound for source and converted amounts"
    )

    # Local currency
    local_currency_code: str = Field(
        default="GEL",
        pattern="^[A-Z]{3}$",
        description="Code of the home currency all conversions target"
    )
    local_currency_name: str = Field(
        default="Georgian Lari",
        description="Display name of the home currency"
    )

    # Default user
    default_user_id: str = Field(
        default="user",
        min_length=1,
        description="ID of the user that can never be deleted"
    )
    default_user_name: str = Field(
        default="user",
        min_length=1,
        description="Display name given to a freshly created default user"
    )

    @model_validator(mode='after')
    def validate_year_range(self) -> 'LedgerSettings':
        if self.max_year < self.min_year:
            raise ValueError("max_year cannot be before min_year")
        return self


class RateSourceSettings(BaseSettings):
    """Exchange-rate source (National Bank of Georgia) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEL_RATES_",
        extra="ignore"
    )

    api_url: str = Field(
        default="https://nbg.gov.ge/gw/api/ct/monetarypolicy/currencies/en/json/",
        description="Endpoint returning the currencies published for a date"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="HTTP timeout for a single rate request"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed rate request is attempted"
    )
    cache_key_prefix: str = Field(
        default="currencyRates_",
        min_length=1,
        description="Storage key prefix for cached daily rates"
    )


class StorageSettings(BaseSettings):
    """Key-value persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEL_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="json_file",
        pattern="^(memory|json_file)$",
        description="Storage backend to use"
    )
    data_dir: str = Field(
        default=".gel_ledger",
        description="Directory for the json_file backend"
    )
    quota_bytes: Optional[int] = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Maximum total size of stored values (None = unlimited)"
    )
    audit_log_key: str = Field(
        default="auditLog",
        description="Storage key holding the persisted audit trail"
    )
    max_audit_entries: int = Field(
        default=500,
        ge=0,
        description="How many audit events are kept in storage"
    )

    @field_validator('data_dir')
    @classmethod
    def validate_data_dir(cls, v: str) -> str:
        """Warn if the data directory points at a file."""
        if Path(v).is_file():
            import warnings
            warnings.warn(
                f"Storage data_dir {v} is a file, not a directory. "
                "The json_file backend will fail to write."
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
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Level for the stdlib logger behind structlog"
    )


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

    # Sub-settings are built on first access and kept; validation
    # predicates read the ledger limits on every call.

    @cached_property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @cached_property
    def rates(self) -> RateSourceSettings:
        return RateSourceSettings()

    @cached_property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @cached_property
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

    checks = {
        "ledger": LedgerSettings,
        "rates": RateSourceSettings,
        "storage": StorageSettings,
        "app": AppSettings,
    }

    for name, settings_cls in checks.items():
        try:
            settings_cls()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results

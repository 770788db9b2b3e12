"""Configuration package."""

from gel_ledger.config.settings import (
    AppSettings,
    LedgerSettings,
    RateSourceSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "LedgerSettings",
    "RateSourceSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]

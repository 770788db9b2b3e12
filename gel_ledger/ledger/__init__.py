"""Ledger core: conversion, YTD, store, filtering and CSV."""

from gel_ledger.ledger.conversion import (
    CURRENCY_SYMBOLS,
    convert_to_gel,
    format_currency,
    get_currency_symbol,
    unit_rate,
)
from gel_ledger.ledger.csv_codec import (
    EXPORT_COLUMNS,
    InvalidCSVFormatError,
    export_csv,
    export_filename,
    import_csv,
    parse_csv_line,
    validate_csv_header,
    validate_csv_row,
)
from gel_ledger.ledger.filters import apply_filters, sort_transactions, summarize
from gel_ledger.ledger.preferences import SectionPreferences
from gel_ledger.ledger.store import (
    TRANSACTIONS_KEY,
    USERS_KEY,
    Confirmation,
    LedgerStore,
)
from gel_ledger.ledger.ytd import calculate_ytd, precalculate_all_ytd

__all__ = [
    # Conversion
    "CURRENCY_SYMBOLS",
    "convert_to_gel",
    "format_currency",
    "get_currency_symbol",
    "unit_rate",
    # CSV
    "EXPORT_COLUMNS",
    "InvalidCSVFormatError",
    "export_csv",
    "export_filename",
    "import_csv",
    "parse_csv_line",
    "validate_csv_header",
    "validate_csv_row",
    # Filtering
    "apply_filters",
    "sort_transactions",
    "summarize",
    # Store
    "Confirmation",
    "LedgerStore",
    "SectionPreferences",
    "TRANSACTIONS_KEY",
    "USERS_KEY",
    # YTD
    "calculate_ytd",
    "precalculate_all_ytd",
]

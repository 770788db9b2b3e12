"""Validation package."""

from gel_ledger.validation.validator import (
    ERROR_MESSAGES,
    ConversionInputValidator,
    parse_date,
    validate_amount,
    validate_currency_code,
    validate_date,
    validate_transaction,
    validate_user,
)

__all__ = [
    "ERROR_MESSAGES",
    "ConversionInputValidator",
    "parse_date",
    "validate_amount",
    "validate_currency_code",
    "validate_date",
    "validate_transaction",
    "validate_user",
]

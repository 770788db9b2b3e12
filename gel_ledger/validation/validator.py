"""
Record and Input Validation

DESIGN DECISION: Validation happens at two levels:

RECORD PREDICATES:
- validate_date / validate_amount / validate_currency_code
- validate_user / validate_transaction
- Pure functions returning a bool, they never raise
- Used to screen persisted collections on load, candidates on write
  and CSV rows on import; failing records are dropped, not repaired

INPUT VALIDATION:
- ConversionInputValidator checks what the user typed into the
  conversion form and reports every problem as a ValidationIssue
- A form with any error never reaches the rate source or the ledger

Limits (year range, maximum amount) come from LedgerSettings.
"""

import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from numbers import Real
from typing import Any, Callable, Optional

from pydantic import BaseModel

from gel_ledger.config import get_settings
from gel_ledger.models.validation import ValidationIssue, ValidationResult


ERROR_MESSAGES = {
    "NO_DATE": "Please select a date.",
    "NO_CURRENCY": "Please select a currency.",
    "INVALID_AMOUNT": "Please enter a valid amount.",
    "FUTURE_DATE": "Cannot select a future date. Please select today or an earlier date.",
    "INVALID_DATE": "Invalid date format.",
    "CORRUPTED_DATA": "Data storage corrupted. Resetting to defaults.",
    "QUOTA_EXCEEDED": "Storage quota exceeded. Please export and clear old data.",
    "INVALID_CSV": "Invalid CSV format. Missing required columns.",
    "API_ERROR": "Failed to fetch exchange rates. Please try again.",
    "NO_CURRENCY_DATA": "No valid currency data available.",
    "CURRENCY_NOT_FOUND": "Selected currency not found.",
}

_CURRENCY_CODE_RE = re.compile(r"[A-Z]{3}")


def parse_date(value: Any) -> Optional[date]:
    """
    Parse an ISO date (or ISO datetime) into a date.

    Returns None for anything that is not a real calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def validate_date(value: Any) -> bool:
    """True iff the value is a real calendar date within the configured years."""
    parsed = parse_date(value)
    if parsed is None:
        return False
    settings = get_settings().ledger
    return settings.min_year <= parsed.year <= settings.max_year


def validate_amount(value: Any) -> bool:
    """True iff the value is a finite number with 0 < value <= max_amount."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    if not math.isfinite(value):
        return False
    return 0 < value <= get_settings().ledger.max_amount


def validate_currency_code(value: Any) -> bool:
    """True iff the value is exactly three uppercase ASCII letters."""
    if not isinstance(value, str):
        return False
    return _CURRENCY_CODE_RE.fullmatch(value) is not None


def _as_record(candidate: Any) -> Optional[Mapping]:
    # Models are checked in their persisted (camelCase) shape.
    if isinstance(candidate, BaseModel):
        return candidate.model_dump(by_alias=True)
    if isinstance(candidate, Mapping):
        return candidate
    return None


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def validate_user(candidate: Any) -> bool:
    """True iff the user has a non-empty string id and name."""
    record = _as_record(candidate)
    if record is None:
        return False
    return _non_empty_str(record.get("id")) and _non_empty_str(record.get("name"))


def validate_transaction(candidate: Any) -> bool:
    """
    True iff the transaction is well-formed.

    Requires an id and owner, a valid date and currency code, and valid
    source and converted amounts.
    """
    record = _as_record(candidate)
    if record is None:
        return False
    if not record.get("id") or not record.get("userId"):
        return False
    return (
        validate_date(record.get("date"))
        and validate_currency_code(record.get("currencyCode"))
        and validate_amount(record.get("amount"))
        and validate_amount(record.get("convertedGEL"))
    )


class ConversionInputValidator:
    """
    Validates a conversion request typed into the form.

    Every problem is reported; nothing is corrected silently.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        """
        Initialize validator.

        Args:
            today: Provider of the current date (for future-date checks).
                   Defaults to date.today.
        """
        self._today = today or date.today

    def validate(
        self,
        value_date: Any,
        currency_code: Any,
        amount: Any,
    ) -> ValidationResult:
        """
        Check date, currency and amount of a conversion request.

        Returns:
            ValidationResult with all issues found
        """
        issues = []

        # Date
        if value_date is None or value_date == "":
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message=ERROR_MESSAGES["NO_DATE"],
                severity="error",
            ))
        elif not validate_date(value_date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=ERROR_MESSAGES["INVALID_DATE"],
                severity="error",
            ))
        elif parse_date(value_date) > self._today():
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=ERROR_MESSAGES["FUTURE_DATE"],
                severity="error",
            ))

        # Currency
        if not currency_code:
            issues.append(ValidationIssue(
                field="currency_code",
                issue_type="missing",
                message=ERROR_MESSAGES["NO_CURRENCY"],
                severity="error",
            ))
        elif not validate_currency_code(currency_code):
            issues.append(ValidationIssue(
                field="currency_code",
                issue_type="invalid_format",
                message=ERROR_MESSAGES["CURRENCY_NOT_FOUND"],
                severity="error",
            ))

        # Amount
        if not validate_amount(amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=ERROR_MESSAGES["INVALID_AMOUNT"],
                severity="error",
            ))

        return ValidationResult(issues=issues)

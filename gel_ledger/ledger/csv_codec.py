"""
CSV Export / Import

Export writes the visible (filtered, sorted) transactions with RFC 4180
quoting, one record per line (line breaks in comments become spaces).
Import merges external rows into the ledger:

- The header must mention "Date", "Currency Code" and "Converted GEL",
  otherwise the whole import is rejected before anything is written
- Rows are laid out with 12 fields (no YTD column) or 13 fields
  (with "YTD Income"); the YTD value is never read back
- A row whose timestamp is already in the ledger is a duplicate and is
  skipped, never overwritten
- Unknown user IDs are created from the row's name and taxpayer ID
- Every non-empty line after the header is one record; a malformed row
  is skipped on its own and never fails the import

Imported rate snapshots and converted values are trusted as historical
records; they are not re-checked against the rate source.
"""

import csv
import io
import math
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Optional

from gel_ledger.audit import AuditLogger
from gel_ledger.config import get_settings
from gel_ledger.ledger.store import LedgerStore
from gel_ledger.models.audit import AuditEventBuilder
from gel_ledger.models.ledger import (
    ImportResult,
    Transaction,
    User,
    generate_transaction_id,
    new_timestamp,
)
from gel_ledger.validation import (
    ERROR_MESSAGES,
    parse_date,
    validate_currency_code,
    validate_date,
    validate_transaction,
    validate_user,
)


EXPORT_COLUMNS = [
    "Date",
    "User ID",
    "User Name",
    "Taxpayer ID",
    "Currency Code",
    "Currency Name",
    "Amount",
    "Rate",
    "Quantity",
    "Converted GEL",
    "YTD Income",
    "Comment",
    "Timestamp",
]

REQUIRED_HEADER_COLUMNS = ("Date", "Currency Code", "Converted GEL")

MIN_ROW_FIELDS = 12
ROW_FIELDS_WITH_YTD = 13


class InvalidCSVFormatError(ValueError):
    """The CSV header lacks a required column; nothing was imported."""
    pass


# =============================================================================
# HELPERS
# =============================================================================

def _format_number(value: Optional[float]) -> str:
    return "" if value is None else repr(float(value))


def _parse_number(value: str) -> Optional[float]:
    try:
        number = float(value.strip())
    except (AttributeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def validate_csv_header(header: str) -> bool:
    """
    Check the header mentions every required column (in any position).

    Raises:
        InvalidCSVFormatError: If a required column is missing
    """
    missing = [col for col in REQUIRED_HEADER_COLUMNS if col not in header]
    if missing:
        raise InvalidCSVFormatError(ERROR_MESSAGES["INVALID_CSV"])
    return True


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into fields, undoing RFC 4180 quoting.

    Raises:
        csv.Error: If the quoting is broken (e.g. an unterminated quote)
            or a field exceeds the csv module field limit
    """
    return next(csv.reader([line], strict=True), [])


def validate_csv_row(values: list[str]) -> bool:
    """
    Row-level check before a row becomes a transaction.

    Needs at least 12 fields, a valid date and currency code, and
    numeric Amount and Converted GEL fields.
    """
    if len(values) < MIN_ROW_FIELDS:
        return False
    if not validate_date(values[0].strip()):
        return False
    if not validate_currency_code(values[4].strip()):
        return False
    if _parse_number(values[6]) is None or _parse_number(values[9]) is None:
        return False
    return True


def export_filename(day: date) -> str:
    """Download name for an export made on `day`."""
    return f"gel-transactions-{day.isoformat()}.csv"


# =============================================================================
# EXPORT
# =============================================================================

def export_csv(
    transactions: Iterable[Transaction],
    *,
    users: Mapping[str, User],
    ytd: Mapping[str, float],
    audit_logger: Optional[AuditLogger] = None,
) -> str:
    """
    Serialize transactions, in the given order, to CSV text.

    Args:
        transactions: The rows to export (already filtered and sorted)
        users: user id -> User, for the name and taxpayer columns
        ytd: transaction id -> YTD value, computed over the whole ledger
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)

    row_count = 0
    for tx in transactions:
        user = users.get(tx.user_id)
        writer.writerow([
            tx.value_date.isoformat(),
            tx.user_id,
            user.name if user else "",
            user.taxpayer_id if user else "",
            tx.currency_code,
            tx.currency_name,
            _format_number(tx.amount),
            _format_number(tx.rate),
            _format_number(tx.quantity),
            _format_number(tx.converted_gel),
            f"{ytd.get(tx.id, 0.0):.2f}",
            " ".join(tx.comment.splitlines()),
            tx.timestamp,
        ])
        row_count += 1

    if audit_logger:
        audit_logger.log(AuditEventBuilder.csv_exported(row_count))

    return buffer.getvalue()


# =============================================================================
# IMPORT
# =============================================================================

def _row_to_transaction(values: list[str], default_user_id: str) -> Transaction:
    if len(values) >= ROW_FIELDS_WITH_YTD:
        comment, timestamp = values[11], values[12]
    else:
        comment, timestamp = values[10], values[11]

    return Transaction(
        id=generate_transaction_id(),
        user_id=values[1].strip() or default_user_id,
        value_date=parse_date(values[0]),
        currency_code=values[4].strip(),
        currency_name=values[5],
        rate=_parse_number(values[7]),
        quantity=_parse_number(values[8]),
        amount=_parse_number(values[6]),
        converted_gel=_parse_number(values[9]),
        comment=comment,
        timestamp=timestamp.strip() or new_timestamp(),
    )


def import_csv(
    text: str,
    store: LedgerStore,
    audit_logger: Optional[AuditLogger] = None,
) -> ImportResult:
    """
    Merge CSV text into the ledger.

    Returns:
        ImportResult with imported / duplicate / created-user counters

    Raises:
        InvalidCSVFormatError: If the header is missing a required column
        StorageError: If writing the merged collections fails
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines()
    header = lines[0] if lines else ""
    try:
        validate_csv_header(header)
    except InvalidCSVFormatError as e:
        if audit_logger:
            audit_logger.log(AuditEventBuilder.csv_import_rejected(str(e)))
        raise

    default_user_id = get_settings().ledger.default_user_id
    known_user_ids = {user.id for user in store.load_users()}
    known_timestamps = {tx.timestamp for tx in store.load_transactions()}

    result = ImportResult()
    new_users: list[User] = []
    new_transactions: list[Transaction] = []

    for line in lines[1:]:
        if not line.strip():
            continue
        try:
            values = parse_csv_line(line)
        except csv.Error:
            result.invalid_rows += 1
            continue
        if not validate_csv_row(values):
            result.invalid_rows += 1
            continue

        tx = _row_to_transaction(values, default_user_id)
        if not validate_transaction(tx):
            result.invalid_rows += 1
            continue
        if tx.timestamp in known_timestamps:
            result.skipped_duplicates += 1
            continue

        if tx.user_id not in known_user_ids:
            user = User(
                id=tx.user_id,
                name=values[2].strip() or tx.user_id,
                taxpayer_id=values[3].strip(),
            )
            if not validate_user(user):
                result.invalid_rows += 1
                continue
            new_users.append(user)
            known_user_ids.add(user.id)
            result.created_users += 1

        new_transactions.append(tx)
        known_timestamps.add(tx.timestamp)
        result.imported += 1

    store.merge_records(new_users, new_transactions)

    if audit_logger:
        audit_logger.log(AuditEventBuilder.csv_imported(
            imported=result.imported,
            skipped_duplicates=result.skipped_duplicates,
            created_users=result.created_users,
            invalid_rows=result.invalid_rows,
        ))

    return result

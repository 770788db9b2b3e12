"""
Year-to-Date Aggregation

YTD for a transaction is the running total of `converted_gel` for the
same user and calendar year, up to and including that transaction.

Two entry points with identical results:
- calculate_ytd: one transaction, scans the whole ledger (O(n log n) per call)
- precalculate_all_ytd: every transaction in one sorted pass

Ordering within a (user, year) is (date, timestamp). Ledger order is
never used: persisted transactions are not kept sorted.
"""

from collections.abc import Iterable

from gel_ledger.models.ledger import Transaction
from gel_ledger.validation import validate_transaction


def _chronological_key(tx: Transaction) -> tuple:
    return (tx.value_date, tx.timestamp or "")


def calculate_ytd(
    transaction: Transaction,
    all_transactions: Iterable[Transaction],
) -> float:
    """
    YTD total for one transaction.

    Invalid transactions are ignored; an invalid `transaction` yields 0.
    """
    if not validate_transaction(transaction):
        return 0.0

    same_period = [
        tx for tx in all_transactions
        if validate_transaction(tx)
        and tx.user_id == transaction.user_id
        and tx.year == transaction.year
        and tx.value_date <= transaction.value_date
    ]
    same_period.sort(key=_chronological_key)

    running_total = 0.0
    for tx in same_period:
        running_total += tx.converted_gel
        if tx.id == transaction.id or (
            tx.value_date == transaction.value_date
            and tx.timestamp == transaction.timestamp
        ):
            return running_total

    return running_total


def precalculate_all_ytd(transactions: Iterable[Transaction]) -> dict[str, float]:
    """
    YTD total for every valid transaction, keyed by transaction id.

    Sorts once by (user, date, timestamp) and keeps one running total
    per (user, year); a total starts at 0 the first time its key is seen.
    """
    valid = [tx for tx in transactions if validate_transaction(tx)]
    valid.sort(key=lambda tx: (tx.user_id, *_chronological_key(tx)))

    running_totals: dict[tuple[str, int], float] = {}
    ytd: dict[str, float] = {}

    for tx in valid:
        key = (tx.user_id, tx.year)
        running_totals[key] = running_totals.get(key, 0.0) + tx.converted_gel
        ytd[tx.id] = running_totals[key]

    return ytd

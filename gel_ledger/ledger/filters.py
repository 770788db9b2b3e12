"""
Filtering and sorting of the transaction table.

Pure functions over an explicit FilterSortState; nothing here reads
session or global state.
"""

from collections.abc import Iterable, Mapping
from typing import Optional

from gel_ledger.models.ledger import (
    ALL,
    FilterSortState,
    SortColumn,
    SortDirection,
    Transaction,
)


def apply_filters(
    transactions: Iterable[Transaction],
    state: FilterSortState,
) -> list[Transaction]:
    """
    Keep the transactions matching every active filter, in input order.

    An empty date bound leaves that side open; both bounds are inclusive.
    """
    result = []
    for tx in transactions:
        if state.user_id != ALL and tx.user_id != state.user_id:
            continue
        if state.currency_code != ALL and tx.currency_code != state.currency_code:
            continue
        if state.date_from is not None and tx.value_date < state.date_from:
            continue
        if state.date_to is not None and tx.value_date > state.date_to:
            continue
        result.append(tx)
    return result


def sort_transactions(
    transactions: Iterable[Transaction],
    state: FilterSortState,
    *,
    user_names: Optional[Mapping[str, str]] = None,
    ytd: Optional[Mapping[str, float]] = None,
) -> list[Transaction]:
    """
    Order transactions by the active column and direction.

    The sort is stable: ties keep their input order in both directions.

    Args:
        user_names: user id -> display name, for the "user" column.
                    Unknown users sort by their id.
        ytd: transaction id -> precomputed YTD, for the "ytd" column.
             Missing entries sort as 0.
    """
    user_names = user_names or {}
    ytd = ytd or {}

    column = state.sort_column
    if column == SortColumn.DATE:
        key = lambda tx: tx.value_date
    elif column == SortColumn.USER:
        key = lambda tx: user_names.get(tx.user_id, tx.user_id)
    elif column == SortColumn.CURRENCY:
        key = lambda tx: tx.currency_code
    elif column == SortColumn.AMOUNT:
        key = lambda tx: tx.amount
    elif column == SortColumn.GEL:
        key = lambda tx: tx.converted_gel
    else:
        key = lambda tx: ytd.get(tx.id, 0.0)

    return sorted(
        transactions,
        key=key,
        reverse=state.sort_direction == SortDirection.DESC,
    )


def summarize(transactions: Iterable[Transaction]) -> dict:
    """Row count and total converted value, for the table footer."""
    count = 0
    total = 0.0
    for tx in transactions:
        count += 1
        total += tx.converted_gel
    return {"count": count, "total_gel": total}

"""Tests for filtering, sorting and totals."""

from datetime import date

import pytest

from gel_ledger.ledger import apply_filters, precalculate_all_ytd, sort_transactions, summarize
from gel_ledger.models import FilterSortState, SortColumn, SortDirection


def ids(transactions):
    return [tx.id for tx in transactions]


class TestApplyFilters:
    """Tests for apply_filters."""

    def test_default_state_keeps_everything(self, sample_transactions):
        """Test nothing is filtered out by default, order kept."""
        assert ids(apply_filters(sample_transactions, FilterSortState())) == ["t1", "t2", "t3", "t4"]

    def test_user_filter(self, sample_transactions):
        """Test filtering by owner."""
        state = FilterSortState(user_id="u2")
        assert ids(apply_filters(sample_transactions, state)) == ["t3"]

    def test_currency_filter(self, sample_transactions):
        """Test filtering by currency code."""
        state = FilterSortState(currency_code="EUR")
        assert ids(apply_filters(sample_transactions, state)) == ["t2"]

    def test_date_bounds_are_inclusive(self, sample_transactions):
        """Test both date bounds include their own day."""
        state = FilterSortState(date_from=date(2025, 1, 15), date_to=date(2025, 1, 20))
        assert ids(apply_filters(sample_transactions, state)) == ["t1", "t3"]

    def test_open_bounds(self, sample_transactions):
        """Test a single bound leaves the other side open."""
        assert ids(apply_filters(sample_transactions, FilterSortState(date_to=date(2024, 12, 31)))) == ["t4"]
        assert ids(apply_filters(sample_transactions, FilterSortState(date_from=date(2025, 2, 1)))) == ["t2"]

    def test_filters_combine(self, sample_transactions):
        """Test the filters are conjunctive."""
        state = FilterSortState(user_id="u1", currency_code="USD", date_from=date(2025, 1, 1))
        assert ids(apply_filters(sample_transactions, state)) == ["t1"]

    def test_filter_order_does_not_matter(self, sample_transactions):
        """Test filtering in steps gives the same result as all at once."""
        combined = FilterSortState(user_id="u1", currency_code="USD")
        by_user = apply_filters(sample_transactions, FilterSortState(user_id="u1"))
        stepwise = apply_filters(by_user, FilterSortState(currency_code="USD"))
        assert ids(stepwise) == ids(apply_filters(sample_transactions, combined))


class TestSortTransactions:
    """Tests for sort_transactions."""

    def test_default_sort_is_newest_first(self, sample_transactions):
        """Test date descending by default."""
        assert ids(sort_transactions(sample_transactions, FilterSortState())) == ["t2", "t3", "t1", "t4"]

    def test_date_ascending(self, sample_transactions):
        """Test date ascending."""
        state = FilterSortState(sort_direction=SortDirection.ASC)
        assert ids(sort_transactions(sample_transactions, state)) == ["t4", "t1", "t3", "t2"]

    def test_sort_by_user_display_name(self, sample_transactions):
        """Test users sort by resolved name, not id."""
        state = FilterSortState(sort_column=SortColumn.USER, sort_direction=SortDirection.ASC)
        names = {"u1": "Zurab", "u2": "Ana"}
        assert ids(sort_transactions(sample_transactions, state, user_names=names))[0] == "t3"

    def test_sort_by_gel(self, sample_transactions):
        """Test numeric sort on the converted value."""
        state = FilterSortState(sort_column=SortColumn.GEL)
        assert ids(sort_transactions(sample_transactions, state)) == ["t2", "t1", "t3", "t4"]

    def test_sort_by_ytd(self, sample_transactions):
        """Test sort by the precomputed YTD lookup."""
        ytd = precalculate_all_ytd(sample_transactions)
        state = FilterSortState(sort_column=SortColumn.YTD, sort_direction=SortDirection.ASC)
        assert ids(sort_transactions(sample_transactions, state, ytd=ytd)) == ["t4", "t3", "t1", "t2"]

    def test_ties_keep_input_order_both_directions(self, make_tx):
        """Test the sort is stable ascending and descending."""
        txs = [make_tx(f"t{i}", amount=10) for i in range(5)]
        for direction in SortDirection:
            state = FilterSortState(sort_column=SortColumn.AMOUNT, sort_direction=direction)
            assert ids(sort_transactions(txs, state)) == ["t0", "t1", "t2", "t3", "t4"]

    def test_sort_does_not_mutate_input(self, sample_transactions):
        """Test the input list is left as it was."""
        before = ids(sample_transactions)
        sort_transactions(sample_transactions, FilterSortState(sort_column=SortColumn.CURRENCY))
        assert ids(sample_transactions) == before


class TestSummarize:
    """Tests for the table totals."""

    def test_totals(self, sample_transactions):
        """Test count and total converted value."""
        totals = summarize(sample_transactions)
        assert totals["count"] == 4
        assert totals["total_gel"] == pytest.approx(287.5 + 620 + 135 + 28)

    def test_empty(self):
        """Test totals of an empty view."""
        assert summarize([]) == {"count": 0, "total_gel": 0.0}

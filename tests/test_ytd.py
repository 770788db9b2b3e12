"""Tests for year-to-date aggregation."""

import random

import pytest

from gel_ledger.ledger import calculate_ytd, precalculate_all_ytd


class TestYtdExample:
    """The two-transaction example for one user."""

    @pytest.fixture
    def transactions(self, make_tx):
        return [
            make_tx("jan", user_id="u1", day="2025-01-15", amount=100, rate=2.875,
                    currency_code="USD"),
            make_tx("feb", user_id="u1", day="2025-02-10", amount=200, rate=3.1,
                    currency_code="EUR"),
        ]

    def test_converted_values(self, transactions):
        """Test the snapshot converted values."""
        assert transactions[0].converted_gel == pytest.approx(287.5)
        assert transactions[1].converted_gel == pytest.approx(620.0)

    def test_single_transaction_ytd(self, transactions):
        """Test YTD after each transaction."""
        assert calculate_ytd(transactions[0], transactions) == pytest.approx(287.5)
        assert calculate_ytd(transactions[1], transactions) == pytest.approx(907.5)

    def test_precalculated_ytd(self, transactions):
        """Test the single-pass form gives the same values."""
        ytd = precalculate_all_ytd(transactions)
        assert ytd["jan"] == pytest.approx(287.5)
        assert ytd["feb"] == pytest.approx(907.5)

    def test_ledger_order_is_irrelevant(self, transactions):
        """Test storing the later transaction first changes nothing."""
        reordered = list(reversed(transactions))
        assert precalculate_all_ytd(reordered) == precalculate_all_ytd(transactions)


class TestYtdPartitioning:
    """Tests for user and year partitions."""

    def test_resets_each_year(self, make_tx):
        """Test the first transaction of a new year starts from its own value."""
        txs = [
            make_tx("dec", day="2024-12-31", amount=50),
            make_tx("jan", day="2025-01-01", amount=30),
        ]
        ytd = precalculate_all_ytd(txs)
        assert ytd["dec"] == 50
        assert ytd["jan"] == 30
        assert calculate_ytd(txs[1], txs) == 30

    def test_users_are_independent(self, make_tx):
        """Test another user's income never counts."""
        txs = [
            make_tx("a", user_id="u1", day="2025-01-10", amount=10),
            make_tx("b", user_id="u2", day="2025-01-11", amount=20),
            make_tx("c", user_id="u1", day="2025-01-12", amount=40),
        ]
        ytd = precalculate_all_ytd(txs)
        assert ytd == {"a": 10, "b": 20, "c": 50}

    def test_same_date_ordered_by_timestamp(self, make_tx):
        """Test same-day transactions accumulate in creation order."""
        txs = [
            make_tx("late", day="2025-01-10", amount=5, timestamp="2025-01-10T15:00:00"),
            make_tx("early", day="2025-01-10", amount=7, timestamp="2025-01-10T09:00:00"),
        ]
        ytd = precalculate_all_ytd(txs)
        assert ytd["early"] == 7
        assert ytd["late"] == 12
        assert calculate_ytd(txs[0], txs) == 12
        assert calculate_ytd(txs[1], txs) == 7

    def test_invalid_transactions_are_ignored(self, make_tx):
        """Test invalid records contribute nothing and yield 0 themselves."""
        good = make_tx("good", day="2025-01-10", amount=10)
        bad = make_tx("bad", day="2025-01-05", amount=2_000_000_000)
        txs = [good, bad]
        assert "bad" not in precalculate_all_ytd(txs)
        assert calculate_ytd(good, txs) == 10
        assert calculate_ytd(bad, txs) == 0.0

    def test_non_decreasing_within_a_year(self, make_tx):
        """Test YTD never drops as the date advances."""
        txs = [
            make_tx(f"t{i}", day=f"2025-{(i % 12) + 1:02d}-{(i % 27) + 1:02d}", amount=1 + i)
            for i in range(40)
        ]
        ytd = precalculate_all_ytd(txs)
        ordered = sorted(txs, key=lambda tx: (tx.value_date, tx.timestamp))
        values = [ytd[tx.id] for tx in ordered]
        assert values == sorted(values)


class TestYtdEquivalence:
    """Both entry points agree on every transaction."""

    def test_random_ledger(self, make_tx):
        """Test agreement on a shuffled multi-user, multi-year ledger."""
        rng = random.Random(7)
        txs = []
        for i in range(120):
            day = f"{rng.choice([2023, 2024, 2025])}-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}"
            txs.append(make_tx(
                f"t{i}",
                user_id=rng.choice(["user", "u1", "u2"]),
                day=day,
                amount=round(rng.uniform(1, 5000), 2),
                rate=round(rng.uniform(0.5, 4), 4),
                timestamp=f"{day}T{rng.randint(0, 23):02d}:00:00.{i:06d}",
            ))
        rng.shuffle(txs)

        ytd = precalculate_all_ytd(txs)
        for tx in txs:
            assert calculate_ytd(tx, txs) == pytest.approx(ytd[tx.id])

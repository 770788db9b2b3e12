"""Shared fixtures: in-memory storage, ledger store, transaction factory."""

from datetime import date

import pytest

from gel_ledger.ledger import LedgerStore
from gel_ledger.models import Transaction, User
from gel_ledger.services.storage import InMemoryStorage


class ScriptedConfirm:
    """Confirmation gate with a fixed answer that remembers its questions."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.questions: list[str] = []

    def __call__(self, message: str) -> bool:
        self.questions.append(message)
        return self.answer


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def confirm():
    return ScriptedConfirm(answer=True)


@pytest.fixture
def store(storage, confirm):
    return LedgerStore(storage, confirm=confirm)


@pytest.fixture
def make_tx():
    """Factory for transactions; converted value defaults to amount * rate."""

    def _make(
        tx_id: str,
        user_id: str = "user",
        day: str = "2025-01-15",
        amount: float = 100.0,
        rate: float = 1.0,
        quantity: float = 1.0,
        currency_code: str = "USD",
        timestamp: str = None,
        comment: str = "",
        converted_gel: float = None,
    ) -> Transaction:
        return Transaction(
            id=tx_id,
            user_id=user_id,
            value_date=date.fromisoformat(day),
            currency_code=currency_code,
            currency_name=currency_code,
            rate=rate,
            quantity=quantity,
            amount=amount,
            converted_gel=converted_gel if converted_gel is not None else amount * rate / quantity,
            comment=comment,
            timestamp=timestamp or f"{day}T12:00:00.000000+00:00#{tx_id}",
        )

    return _make


@pytest.fixture
def sample_users():
    return [
        User(id="user", name="user"),
        User(id="u1", name="Nino", taxpayer_id="01001012345"),
        User(id="u2", name="Giorgi"),
    ]


@pytest.fixture
def sample_transactions(make_tx):
    return [
        make_tx("t1", user_id="u1", day="2025-01-15", amount=100, rate=2.875,
                timestamp="2025-01-15T10:00:00.000000+00:00"),
        make_tx("t2", user_id="u1", day="2025-02-10", amount=200, rate=3.1,
                currency_code="EUR", timestamp="2025-02-10T10:00:00.000000+00:00"),
        make_tx("t3", user_id="u2", day="2025-01-20", amount=50, rate=2.7,
                timestamp="2025-01-20T09:00:00.000000+00:00"),
        make_tx("t4", user_id="u1", day="2024-12-31", amount=10, rate=2.8,
                timestamp="2024-12-31T23:00:00.000000+00:00"),
    ]


@pytest.fixture
def seeded_store(store, sample_users, sample_transactions):
    for user in sample_users[1:]:
        assert store.add_user(user)
    for tx in sample_transactions:
        assert store.add_transaction(tx)
    return store

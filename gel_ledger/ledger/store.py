"""
Ledger Store

Owns the persisted Users and Transactions collections.

GUARANTEES:
- Nothing that fails validation is ever written
- Records that fail validation on load are dropped from the view
  (self-healing against corrupted storage)
- There is always at least one user; the default user is never deleted
- Destructive multi-record operations ask the confirmation gate first;
  a "no" leaves everything untouched
- A failed write raises StorageError and leaves the stored collections
  as they were before the write

The store keeps no in-memory copy: every operation reads the current
collections from storage, builds the new collection and writes it back.
What the caller sees is therefore always the last successful write.
"""

from collections.abc import Callable
from typing import Optional

from pydantic import ValidationError

from gel_ledger.audit import AuditLogger
from gel_ledger.config import get_settings
from gel_ledger.models.audit import AuditEventBuilder
from gel_ledger.models.ledger import (
    DeletionOutcome,
    Transaction,
    User,
    create_default_user,
    generate_user_id,
)
from gel_ledger.services.storage import (
    KeyValueStorageInterface,
    SerializationError,
    StorageError,
)
from gel_ledger.validation import validate_transaction, validate_user


USERS_KEY = "users"
TRANSACTIONS_KEY = "transactions"

# A yes/no gate asked before destructive operations.
Confirmation = Callable[[str], bool]


def _decline(message: str) -> bool:
    return False


class LedgerStore:
    """
    Authoritative access to users and transactions.

    Not-found and blocked operations are reported through return values;
    only storage failures raise.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        confirm: Optional[Confirmation] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Args:
            storage: Key-value backend holding the collections
            confirm: Confirmation gate. Without one, every destructive
                     operation that needs confirmation is declined.
            audit_logger: Audit logger (local-only logger if None)
        """
        self._storage = storage
        self._confirm = confirm or _decline
        self._audit = audit_logger or AuditLogger()
        self._settings = get_settings().ledger

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def _read_collection(self, key: str) -> list:
        try:
            raw = self._storage.get(key)
        except SerializationError as e:
            self._audit.log_storage_corrupted(key, str(e))
            return []

        if raw is None:
            return []
        if not isinstance(raw, list):
            self._audit.log_storage_corrupted(
                key, f"expected a list, found {type(raw).__name__}"
            )
            return []
        return raw

    def _write(self, key: str, records: list) -> None:
        try:
            self._storage.set(key, [record.to_storage_dict() for record in records])
        except StorageError as e:
            self._audit.log_save_failed(key, e)
            raise

    def load_users(self) -> list[User]:
        """
        Load all valid users.

        If no valid user is stored, a fresh default user is saved and returned.
        """
        users: list[User] = []
        seen: set[str] = set()
        for record in self._read_collection(USERS_KEY):
            if not validate_user(record):
                continue
            try:
                user = User.model_validate(record)
            except ValidationError:
                continue
            if not validate_user(user):
                continue
            if user.id in seen:
                continue
            seen.add(user.id)
            users.append(user)

        if not users:
            users = [create_default_user()]
            self._write(USERS_KEY, users)
        return users

    def load_transactions(self) -> list[Transaction]:
        """Load all valid transactions, in stored order."""
        transactions: list[Transaction] = []
        for record in self._read_collection(TRANSACTIONS_KEY):
            if not validate_transaction(record):
                continue
            try:
                transactions.append(Transaction.model_validate(record))
            except ValidationError:
                continue
        return transactions

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self.load_users():
            if user.id == user_id:
                return user
        return None

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def add_user(self, user: User, source: str = "manual") -> bool:
        """
        Append a user.

        Returns False (and writes nothing) if the user is invalid or the
        id is already taken.
        """
        if not validate_user(user):
            return False
        users = self.load_users()
        if any(existing.id == user.id for existing in users):
            return False

        self._write(USERS_KEY, users + [user])
        self._audit.log(AuditEventBuilder.user_created(user.id, user.name, source))
        return True

    def create_user(self, name: str, taxpayer_id: str = "") -> Optional[User]:
        """Create a user with a generated id. Returns None if the name is empty."""
        user = User(id=generate_user_id(), name=name, taxpayer_id=taxpayer_id)
        return user if self.add_user(user) else None

    def update_user(self, user: User) -> bool:
        """Replace the user with the same id. No-op if absent or invalid."""
        if not validate_user(user):
            return False
        users = self.load_users()
        for index, existing in enumerate(users):
            if existing.id == user.id:
                users[index] = user
                self._write(USERS_KEY, users)
                self._audit.log(AuditEventBuilder.user_updated(user.id))
                return True
        return False

    def delete_user(self, user_id: str) -> DeletionOutcome:
        """
        Delete a user together with their transactions.

        The default user and the last remaining user are never deleted.
        A user who owns transactions is only deleted after confirmation.
        """
        if user_id == self._settings.default_user_id:
            self._audit.log(
                AuditEventBuilder.deletion_blocked(user_id, "default user")
            )
            return DeletionOutcome.BLOCKED_DEFAULT_USER

        users = self.load_users()
        if not any(user.id == user_id for user in users):
            return DeletionOutcome.NOT_FOUND
        if len(users) <= 1:
            self._audit.log(
                AuditEventBuilder.deletion_blocked(user_id, "last remaining user")
            )
            return DeletionOutcome.BLOCKED_LAST_USER

        transactions = self.load_transactions()
        remaining = [tx for tx in transactions if tx.user_id != user_id]
        removed = len(transactions) - len(remaining)

        if removed:
            question = (
                f"This user has {removed} transaction(s). "
                "Delete the user and all of their transactions?"
            )
            if not self._confirm(question):
                return DeletionOutcome.CANCELLED
            # Transactions go first: if the user write then fails, no
            # transaction is left pointing at a deleted user.
            self._write(TRANSACTIONS_KEY, remaining)

        self._write(USERS_KEY, [user for user in users if user.id != user_id])
        self._audit.log(AuditEventBuilder.user_deleted(user_id, removed))
        return DeletionOutcome.DELETED

    def delete_all_users(self) -> bool:
        """
        Reset the ledger: one fresh default user and no transactions.

        Returns False if the confirmation gate declines.
        """
        if not self._confirm(
            "Delete ALL users and ALL transactions? This cannot be undone."
        ):
            return False

        removed_users = len(self.load_users())
        removed_transactions = len(self.load_transactions())

        self._write(TRANSACTIONS_KEY, [])
        self._write(USERS_KEY, [create_default_user()])
        self._audit.log(
            AuditEventBuilder.users_reset(removed_users, removed_transactions)
        )
        return True

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(self, transaction: Transaction) -> bool:
        """
        Append a transaction.

        Returns False (and writes nothing) if the transaction is invalid,
        its owner does not exist, or its id or timestamp is already used.
        """
        if not validate_transaction(transaction):
            return False
        if self.get_user(transaction.user_id) is None:
            return False

        transactions = self.load_transactions()
        for existing in transactions:
            if existing.id == transaction.id or existing.timestamp == transaction.timestamp:
                return False

        self._write(TRANSACTIONS_KEY, transactions + [transaction])
        self._audit.log(AuditEventBuilder.transaction_added(
            transaction.id,
            transaction.user_id,
            f"{transaction.converted_gel:.2f}",
        ))
        return True

    def delete_transaction(self, transaction_id: str) -> bool:
        """Delete one transaction. Returns False if it does not exist."""
        transactions = self.load_transactions()
        remaining = [tx for tx in transactions if tx.id != transaction_id]
        if len(remaining) == len(transactions):
            return False

        self._write(TRANSACTIONS_KEY, remaining)
        self._audit.log(AuditEventBuilder.transaction_deleted(transaction_id))
        return True

    def update_comment(self, transaction_id: str, comment: str) -> bool:
        """Replace a transaction's comment. Returns False if it does not exist."""
        transactions = self.load_transactions()
        for index, tx in enumerate(transactions):
            if tx.id == transaction_id:
                transactions[index] = tx.model_copy(update={"comment": comment})
                self._write(TRANSACTIONS_KEY, transactions)
                self._audit.log(AuditEventBuilder.comment_updated(transaction_id))
                return True
        return False

    def clear_all_transactions(self) -> bool:
        """
        Remove every transaction; users are kept.

        Returns False if the confirmation gate declines.
        """
        if not self._confirm("Are you sure you want to delete all transactions?"):
            return False

        count = len(self.load_transactions())
        self._write(TRANSACTIONS_KEY, [])
        self._audit.log(AuditEventBuilder.transactions_cleared(count))
        return True

    def merge_records(
        self,
        new_users: list[User],
        new_transactions: list[Transaction],
    ) -> None:
        """
        Append already-screened users and transactions in two writes.

        Users are written first so every merged transaction references
        a stored user. Used by the CSV import.
        """
        if new_users:
            self._write(USERS_KEY, self.load_users() + new_users)
            for user in new_users:
                self._audit.log(
                    AuditEventBuilder.user_created(user.id, user.name, source="csv_import")
                )
        if new_transactions:
            self._write(TRANSACTIONS_KEY, self.load_transactions() + new_transactions)

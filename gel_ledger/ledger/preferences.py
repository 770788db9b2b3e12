"""
Collapsed/expanded state of the app's sections.

Stored as booleans under "collapsed_<section>" so the layout survives
a restart. Unreadable flags fall back to expanded.
"""

from typing import Optional

from gel_ledger.audit import AuditLogger
from gel_ledger.services.storage import (
    KeyValueStorageInterface,
    SerializationError,
    StorageError,
)


COLLAPSED_KEY_PREFIX = "collapsed_"


class SectionPreferences:
    def __init__(
        self,
        storage: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()

    def is_collapsed(self, section: str) -> bool:
        key = f"{COLLAPSED_KEY_PREFIX}{section}"
        try:
            value = self._storage.get(key)
        except SerializationError as e:
            self._audit.log_storage_corrupted(key, str(e))
            return False
        return value is True

    def set_collapsed(self, section: str, collapsed: bool) -> bool:
        """Persist the flag. Returns False if the write failed."""
        key = f"{COLLAPSED_KEY_PREFIX}{section}"
        try:
            self._storage.set(key, bool(collapsed))
        except StorageError as e:
            self._audit.log_save_failed(key, e)
            return False
        return True

"""
In-Memory Storage Implementation

Backs tests and throwaway sessions. Values are stored as encoded JSON
text, the same way a browser's localStorage holds them, so:
- callers never share mutable objects with the store
- a size quota can be enforced on the encoded form
"""

import json
from typing import Any, Optional

from gel_ledger.services.storage.interface import (
    KeyValueStorageInterface,
    QuotaExceededError,
    SerializationError,
)


class InMemoryStorage(KeyValueStorageInterface):
    """Dict-backed key-value storage with an optional byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self._data: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def _encode(self, value: Any) -> str:
        try:
            return json.dumps(value)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Value is not JSON-serializable: {e}")

    def _used_bytes(self, excluding: Optional[str] = None) -> int:
        return sum(
            len(k) + len(v.encode("utf-8"))
            for k, v in self._data.items()
            if k != excluding
        )

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise SerializationError(f"Stored value for '{key}' is not valid JSON: {e}")

    def set(self, key: str, value: Any) -> None:
        encoded = self._encode(value)
        if self._quota_bytes is not None:
            needed = len(key) + len(encoded.encode("utf-8"))
            if self._used_bytes(excluding=key) + needed > self._quota_bytes:
                raise QuotaExceededError(
                    f"Storing '{key}' would exceed the {self._quota_bytes} byte quota"
                )
        self._data[key] = encoded

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def set_raw(self, key: str, raw: str) -> None:
        """Store undecoded text as-is (used to simulate corrupted data)."""
        self._data[key] = raw

"""
Abstract Storage Interface

DESIGN DECISION: The ledger persists everything through a tiny
key-value interface (get/set/remove over JSON-serializable values).
This allows us to:
1. Use in-memory storage for testing
2. Keep a file-backed store for the desktop/Streamlit app
3. Swap in another backend without touching ledger logic

The interface is intentionally simple - the ledger only ever stores a
handful of well-known keys ("users", "transactions", cached rates).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for key-value persistence.

    Any storage implementation must implement these methods.
    Writes either fully succeed or raise; a failed write leaves the
    previously stored value in place.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Read the value stored under a key.

        Returns:
            The decoded value, or None if the key is absent

        Raises:
            SerializationError: If the stored value cannot be decoded
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Store a JSON-serializable value under a key.

        Raises:
            SerializationError: If the value is not JSON-serializable
            QuotaExceededError: If the backend is out of space
            StorageError: If the write fails for any other reason
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Remove a key. Removing a missing key is not an error.

        Raises:
            StorageError: If the backend cannot be modified
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List all stored keys."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class QuotaExceededError(StorageError):
    """The backend has no room left for the value."""
    pass


class SerializationError(StorageError):
    """A value could not be encoded to or decoded from JSON."""
    pass

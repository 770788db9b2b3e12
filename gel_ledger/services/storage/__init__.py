"""
Storage Services Package

Provides the abstract key-value interface and concrete implementations.
JSON files back the app; the in-memory store backs tests.
"""

from gel_ledger.services.storage.interface import (
    KeyValueStorageInterface,
    QuotaExceededError,
    SerializationError,
    StorageError,
)
from gel_ledger.services.storage.memory import InMemoryStorage
from gel_ledger.services.storage.json_file import JsonFileStorage

__all__ = [
    # Interface
    "KeyValueStorageInterface",
    # Exceptions
    "QuotaExceededError",
    "SerializationError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]

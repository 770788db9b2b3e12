"""Services package. Rate services are imported from gel_ledger.services.rates."""

from gel_ledger.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    QuotaExceededError,
    SerializationError,
    StorageError,
)

__all__ = [
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorageInterface",
    "QuotaExceededError",
    "SerializationError",
    "StorageError",
]

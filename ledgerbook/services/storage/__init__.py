"""
Storage Services Package

Provides the abstract key-value port, its implementations, and the typed
collection layer the ledger components work against.
"""

from ledgerbook.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    KeyValueStore,
    StorageError,
)
from ledgerbook.services.storage.collections import (
    CURRENT_USER_KEY,
    Collection,
    CollectionStore,
)
from ledgerbook.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
)
from ledgerbook.services.storage.json_file import JsonFileKeyValueStore
from ledgerbook.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Collections
    "CURRENT_USER_KEY",
    "Collection",
    "CollectionStore",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]

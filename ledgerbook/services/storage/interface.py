"""
Abstract Storage Interface

DESIGN DECISION: The ledger never reaches into a global store. Every
component is handed a storage object, which allows us to:
1. Swap the JSON-file store for Google Sheets (or anything else)
2. Use in-memory storage for testing
3. Stage multi-collection writes and flush them together

The port is intentionally tiny: a string key-value store. Each collection
is one JSON array under one key, read whole and written whole.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from ledgerbook.models.audit import AuditEvent


class KeyValueStore(ABC):
    """
    Abstract interface for the durable key-value store.
    
    Values are opaque strings. Implementations need no cross-key atomicity.
    """
    
    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.
        
        Returns:
            The stored string, or None if the key is absent
            
        Raises:
            StorageError: If the backend cannot be read
        """
        pass
    
    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.
        
        Raises:
            StorageError: If the write fails
        """
        pass
    
    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is a no-op.
        
        Raises:
            StorageError: If the backend cannot be written
        """
        pass
    
    @abstractmethod
    def keys(self) -> Iterable[str]:
        """List the keys currently stored."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.
    
    Audit logs are append-only - we never delete or modify them.
    """
    
    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.
        
        Returns:
            True if logged successfully
        """
        pass
    
    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass
    
    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass

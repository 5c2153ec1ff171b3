"""
In-Memory Storage

Used by the test-suite and for throwaway sessions. Nothing survives the
process.
"""

from typing import Iterable, Optional

from ledgerbook.models.audit import AuditEvent
from ledgerbook.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
)


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed key-value store."""
    
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.write_count = 0
    
    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)
    
    def write(self, key: str, value: str) -> None:
        self._data[key] = value
        self.write_count += 1
    
    def remove(self, key: str) -> None:
        self._data.pop(key, None)
    
    def keys(self) -> Iterable[str]:
        return list(self._data)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""
    
    def __init__(self):
        self._events: list[AuditEvent] = []
    
    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True
    
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events
    
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
